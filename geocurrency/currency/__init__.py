"""Static currency data and live exchange rates."""
