"""Source extraction, condition generation and rule evaluation."""
