"""Strategy definitions, rule evaluation and signal consolidation."""
