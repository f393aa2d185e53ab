"""HR attendance package.

Organized by feature modules (attendance, leaves, calendar, users) with a
thin Flask controller layer over service/repository layers.
"""
