from .db import db
from .audit_log import AuditLog
from .facility import Facility
from .slot import Slot
from .service import Service, ServiceAvailability
from .booking import Booking, BookingService, BookingExtension
from .payment import Payment
