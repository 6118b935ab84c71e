"""Cloud provider implementations (AWS only)."""
