"""Quota management.

Daily request quotas

Every request that goes through the gateway to a model counts as one request
against the daily quota of the user for that model. Models are divided into
tiers (free, standard, heavy), each tier has a default daily limit and an
administrator can override the tier or the limit of any model.

Counters are kept per user, per model and per calendar day. Quota checks fail
open: when the usage storage is not available the request is allowed.
Recording usage is best-effort, a lost increment is logged and never blocks
the request that caused it.
"""
