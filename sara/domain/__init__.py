"""Rental domain rules: contract lifecycle, signatures and caller identity.

Nothing here touches the database; services load records, ask these modules
what may change, and persist the result.
"""
