"""Price lookups, price target tracking, alert delivery and address helpers."""
