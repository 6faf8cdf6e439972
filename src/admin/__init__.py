"""
Admin System Module

Administrative functionality for RailBooker:

- Adding trains together with their class fares
- Revenue ledger balance and payment status management
- Booking and cancellation listings
- Dashboard figures (booking counts, bookings per class, seat occupancy)
- SQL query log and the realtime change feed for the dashboard
"""
