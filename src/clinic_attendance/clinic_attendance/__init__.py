"""Clinic attendance package.

Organized by feature modules (patients, billing, attendance) with a thin Flask
controller layer over service/repository layers. The attendance module owns the
transactional reconciliation of a patient's daily visit against their treatment
ledger.
"""
