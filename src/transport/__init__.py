"""Transport message record creation and sourcing."""
