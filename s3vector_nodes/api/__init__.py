"""HTTP runner for the vector node types."""
