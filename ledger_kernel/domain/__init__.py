"""Pure domain values: lots, DTOs, rounding and the injectable clock."""
