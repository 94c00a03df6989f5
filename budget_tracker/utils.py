# budget_tracker/utils.py

def dedupe_transactions(transactions):
    """
    Remove duplicates based on (date, name, description, budget_type, amount).
    The first occurrence wins.
    """
    seen = set()
    unique = []
    for tx in transactions:
        key = (tx.date, tx.name, tx.description, tx.budget_type, tx.amount)
        if key not in seen:
            seen.add(key)
            unique.append(tx)
    return unique
