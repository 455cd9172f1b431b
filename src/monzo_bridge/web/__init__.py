"""
Example web app: Monzo login, an accounts dashboard and a webhook receiver.
"""
