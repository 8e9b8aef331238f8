"""Vault document reconciliation: frontmatter, diary, film notes."""
