"""Live Attendance package.

Feature modules (attendance, shifts, live) hold pure domain logic; the live
module adds the refresh engine, a MySQL-backed session store and a thin Flask
controller for the dashboard.
"""
