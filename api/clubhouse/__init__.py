"""Clubhouse API: members, courts and court bookings."""
