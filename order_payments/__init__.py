"""
Order payment core.

Applies asynchronous, at-least-once payment gateway notifications to orders
exactly once, records refund outcomes, and generates installment repayment
schedules with exact decimal arithmetic.
"""

__version__ = "0.1.0"
