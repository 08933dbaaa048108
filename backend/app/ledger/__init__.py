"""Batch Ledger — registry, append-only history, stage rules and guards.

Entry point:  `app.ledger.service.open_ledger(db, clock)` returns a
`BatchLedger` bound to one session and one clock.
"""
