"""Ride playback."""

from coaster_builder.ride.driver import RideDriver

__all__ = ["RideDriver"]
