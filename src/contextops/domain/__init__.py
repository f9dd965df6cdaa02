"""Pure, in-memory reconciliation domain: model, context query and operations."""
