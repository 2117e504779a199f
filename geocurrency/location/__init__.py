"""Location resolution: heuristics, arbitration, caching and the resolver facade."""
