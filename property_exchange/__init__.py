"""
Property Exchange API: listings, buy/rent requests and their transactions.
"""
