"""Text, JSON, and SARIF rendering."""
