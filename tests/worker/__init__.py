"""
Async Worker Test Suite.

- Queue ordering and batch selection
- Throttle budgets
- Tick arming and re-arming on host activity changes
- Event bus and handler slots
- Lifecycle state transitions and execution paths
- Invariants that must hold across ticks
"""
