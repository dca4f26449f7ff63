"""Rulesets.

Only chess is shipped; the rule engine lives in ``rulesets.chess.rules``.
"""
