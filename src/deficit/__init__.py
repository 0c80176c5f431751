"""Deficit landing page, waitlist and admin dashboard."""
