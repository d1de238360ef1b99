"""Package logging setup (labeled stdout output)."""
