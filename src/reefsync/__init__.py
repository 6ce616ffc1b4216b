"""reefsync: aquarium game backend reconciling a relational store with an on-chain ledger."""
