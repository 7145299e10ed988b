"""
Jolpica (Ergast-compatible) data ingestion package.

Free, keyless API covering every season since 1950. Data kinds fetched:
  - schedule      → season calendar (round, race name, circuit, date)
  - results       → per-round classified/unclassified results
  - drivers       → driver_id → "Given Family" names for a season
  - constructors  → constructor_id → name (all-time)
  - standings     → final driver championship standings

All kinds go through RetryingFetcher, which caches normalized tables in
data/cache/ so repeated runs never hit the network twice.
"""
