"""Review request host gateway (GitHub pull requests, Azure DevOps pull requests)."""
