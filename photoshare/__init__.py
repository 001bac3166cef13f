"""Photo sharing backend - content access resolution engine."""
