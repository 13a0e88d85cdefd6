"""HTTP host for flowbuilder."""
