"""Typed YAML source configuration loading.

This module loads and validates the YAML file describing one source:
its data format, per-format options, batch bounds, and spool settings.
Unknown keys are rejected so typos never silently change behavior.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, cast

from core.config_fields import (
    choice_with_default,
    float_with_default,
    int_with_default,
    optional_bool,
    optional_string,
)
from core.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_MAX_JSON_OBJECT_LENGTH,
    DEFAULT_MAX_LINE_LENGTH,
    DEFAULT_MAX_SPOOL_FILES,
    DEFAULT_MAX_XML_RECORD_LENGTH,
    DEFAULT_POLL_TIMEOUT_SECS,
    DEFAULT_RETENTION_MINUTES,
    DEFAULT_TRANSPORT_MAX_WAIT_SECS,
    SUPPORTED_CSV_HEADERS,
    SUPPORTED_CSV_MODES,
    SUPPORTED_DATA_FORMATS,
    SUPPORTED_JSON_MODES,
    SUPPORTED_POST_PROCESSING,
)
from core.errors import SluiceConfigError, SluiceDependencyError
from core.types import (
    CsvHeader,
    CsvMode,
    DataFormat,
    DelimitedOptions,
    JsonMode,
    JsonOptions,
    PostProcessing,
    SourceOptions,
    SpoolOptions,
    TextOptions,
    TransportOptions,
    XmlOptions,
)

_ROOT_KEYS = {
    "version",
    "data_format",
    "batch_size",
    "poll_timeout_secs",
    "spool",
    "text",
    "json",
    "delimited",
    "xml",
    "transport",
}
_SECTION_KEYS = {
    "spool": {
        "directory",
        "file_pattern",
        "initial_file",
        "max_spool_files",
        "error_dir",
        "post_processing",
        "archive_dir",
        "retention_minutes",
    },
    "text": {"max_line_length", "set_truncated"},
    "json": {"content", "max_object_length", "produce_single_record"},
    "delimited": {"mode", "header", "convert_to_map"},
    "xml": {"record_element", "max_record_length"},
    "transport": {"produce_single_record", "max_wait_time_secs"},
}


def load_source_config(config_path: str) -> SourceOptions:
    """Load and validate a YAML source config from disk.

    Args:
        config_path: File path to YAML source config.

    Returns:
        Fully validated source options.

    Raises:
        SluiceDependencyError: If PyYAML is unavailable.
        SluiceConfigError: If file is invalid or schema checks fail.
    """
    payload = _load_yaml_payload(config_path)
    return parse_source_config(payload)


def parse_source_config(payload: object) -> SourceOptions:
    """Validate an already-loaded config payload.

    Args:
        payload: Parsed YAML or JSON object.

    Returns:
        Fully validated source options.

    Raises:
        SluiceConfigError: If schema checks fail.
    """
    root_mapping = _expect_mapping(payload, "source config root")
    _validate_keys(root_mapping, _ROOT_KEYS, "source config")
    _parse_version(root_mapping)
    raw_format = optional_string(root_mapping, "data_format")
    if raw_format is None:
        raise SluiceConfigError(
            "Source config missing required field 'data_format'. "
            f"Use one of: {', '.join(SUPPORTED_DATA_FORMATS)}."
        )
    data_format = choice_with_default(
        root_mapping, "data_format", SUPPORTED_DATA_FORMATS, raw_format
    )
    options = SourceOptions(
        data_format=cast(DataFormat, data_format),
        batch_size=int_with_default(root_mapping, "batch_size", DEFAULT_BATCH_SIZE, minimum=1),
        poll_timeout_secs=float_with_default(
            root_mapping, "poll_timeout_secs", DEFAULT_POLL_TIMEOUT_SECS
        ),
        spool=_parse_spool(_section(root_mapping, "spool")),
        text=_parse_text(_section(root_mapping, "text")),
        json=_parse_json(_section(root_mapping, "json")),
        delimited=_parse_delimited(_section(root_mapping, "delimited")),
        xml=_parse_xml(_section(root_mapping, "xml")),
        transport=_parse_transport(_section(root_mapping, "transport")),
    )
    _validate_format_requirements(root_mapping, options)
    return options


def _load_yaml_payload(config_path: str) -> object:
    try:
        import yaml  # type: ignore[import-untyped]
    except ImportError as error:  # pragma: no cover - dependency failure
        raise SluiceDependencyError(
            "YAML source config support requires PyYAML. Install with 'pip install pyyaml'."
        ) from error
    config_file = Path(config_path).expanduser().resolve()
    if not config_file.exists():
        raise SluiceConfigError(
            f"Source config file does not exist at {config_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(config_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise SluiceConfigError(
            f"Failed to read source config at {config_file}: {error}. "
            "Check file permissions and retry."
        ) from error
    except yaml.YAMLError as error:
        raise SluiceConfigError(
            f"Failed to parse YAML source config at {config_file}: {error}. "
            "Fix YAML syntax and retry."
        ) from error
    if payload is None:
        raise SluiceConfigError(
            f"Source config at {config_file} is empty. Define 'version' and 'data_format'."
        )
    return payload


def _expect_mapping(value: object, context: str) -> Mapping[str, object]:
    if isinstance(value, Mapping):
        normalized_mapping = {}
        for key, payload in value.items():
            if not isinstance(key, str):
                raise SluiceConfigError(
                    f"Invalid {context}: expected string keys, got {type(key).__name__}."
                )
            normalized_mapping[key] = payload
        return normalized_mapping
    raise SluiceConfigError(
        f"Invalid {context}: expected object mapping, got {type(value).__name__}."
    )


def _section(root_mapping: Mapping[str, object], name: str) -> Mapping[str, object]:
    raw_section = root_mapping.get(name)
    if raw_section is None:
        return {}
    section = _expect_mapping(raw_section, f"source config section '{name}'")
    _validate_keys(section, _SECTION_KEYS[name], f"source config section '{name}'")
    return section


def _parse_version(root_mapping: Mapping[str, object]) -> int:
    raw_version = root_mapping.get("version", 1)
    if not isinstance(raw_version, int) or isinstance(raw_version, bool):
        raise SluiceConfigError("Source config field 'version' must be an integer. Set version: 1.")
    if raw_version != 1:
        raise SluiceConfigError(f"Unsupported source config version {raw_version}. Use version: 1.")
    return raw_version


def _parse_spool(section: Mapping[str, object]) -> SpoolOptions:
    post_processing = choice_with_default(
        section, "post_processing", SUPPORTED_POST_PROCESSING, "none"
    )
    archive_dir = optional_string(section, "archive_dir")
    if post_processing == "archive" and archive_dir is None:
        raise SluiceConfigError(
            "Spool post_processing 'archive' requires 'archive_dir'. "
            "Set spool.archive_dir or choose another post_processing action."
        )
    return SpoolOptions(
        directory=optional_string(section, "directory"),
        file_pattern=optional_string(section, "file_pattern"),
        initial_file=optional_string(section, "initial_file"),
        max_spool_files=int_with_default(
            section, "max_spool_files", DEFAULT_MAX_SPOOL_FILES, minimum=1
        ),
        error_dir=optional_string(section, "error_dir"),
        post_processing=cast(PostProcessing, post_processing),
        archive_dir=archive_dir,
        retention_minutes=int_with_default(
            section, "retention_minutes", DEFAULT_RETENTION_MINUTES
        ),
    )


def _parse_text(section: Mapping[str, object]) -> TextOptions:
    return TextOptions(
        max_line_length=int_with_default(
            section, "max_line_length", DEFAULT_MAX_LINE_LENGTH, minimum=1
        ),
        set_truncated=optional_bool(section, "set_truncated", False),
    )


def _parse_json(section: Mapping[str, object]) -> JsonOptions:
    content = choice_with_default(section, "content", SUPPORTED_JSON_MODES, "multiple_objects")
    return JsonOptions(
        content=cast(JsonMode, content),
        max_object_length=int_with_default(
            section, "max_object_length", DEFAULT_MAX_JSON_OBJECT_LENGTH, minimum=1
        ),
        produce_single_record=optional_bool(section, "produce_single_record", False),
    )


def _parse_delimited(section: Mapping[str, object]) -> DelimitedOptions:
    mode = choice_with_default(section, "mode", SUPPORTED_CSV_MODES, "csv")
    header = choice_with_default(section, "header", SUPPORTED_CSV_HEADERS, "with_header")
    return DelimitedOptions(
        mode=cast(CsvMode, mode),
        header=cast(CsvHeader, header),
        convert_to_map=optional_bool(section, "convert_to_map", True),
    )


def _parse_xml(section: Mapping[str, object]) -> XmlOptions:
    return XmlOptions(
        record_element=optional_string(section, "record_element") or "record",
        max_record_length=int_with_default(
            section, "max_record_length", DEFAULT_MAX_XML_RECORD_LENGTH, minimum=1
        ),
    )


def _parse_transport(section: Mapping[str, object]) -> TransportOptions:
    return TransportOptions(
        produce_single_record=optional_bool(section, "produce_single_record", False),
        max_wait_time_secs=float_with_default(
            section, "max_wait_time_secs", DEFAULT_TRANSPORT_MAX_WAIT_SECS
        ),
    )


def _validate_format_requirements(
    root_mapping: Mapping[str, object],
    options: SourceOptions,
) -> None:
    if options.data_format == "xml" and "record_element" not in _section(root_mapping, "xml"):
        raise SluiceConfigError(
            "XML data format requires 'xml.record_element'. "
            "Name the element that delimits records."
        )


def _validate_keys(
    mapping: Mapping[str, object],
    allowed_keys: set[str],
    context: str,
) -> None:
    unknown_keys = sorted(set(mapping) - allowed_keys)
    if unknown_keys:
        raise SluiceConfigError(f"Invalid {context}: unknown fields {', '.join(unknown_keys)}.")
