"""StageVault command-line interface."""
