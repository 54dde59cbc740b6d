from cinema_booking.models.theatre import Theatre
from cinema_booking.models.showtime import Showtime
from cinema_booking.models.inventory import ShowtimeInventory
from cinema_booking.models.booking import Booking
from cinema_booking.models.seat_claim import SeatClaim

__all__ = ["Theatre", "Showtime", "ShowtimeInventory", "Booking", "SeatClaim"]
