"""
Booking & Cancellation Module

This module provides the booking lifecycle for RailBooker. It includes:

- Group bookings: passengers, fare resolution, seat numbers and one payment
- Edge-triggered booking status transitions driving the seat inventory
- Cancellation with a flat-fee refund reversed out of revenue

Key Components:
- booking_service.py: booking orchestration in a single transaction
- cancellation_service.py: cancellation workflow and refund calculation
- state_machine.py: booking status edges and their seat effects
- router.py: FastAPI endpoints for bookings and cancellations
- schemas.py: Pydantic models for booking requests and responses
"""
