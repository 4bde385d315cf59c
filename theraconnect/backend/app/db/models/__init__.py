from .user import User, UserRole
from .parent import Parent
from .therapist import Therapist, TherapistActiveTime, TherapistStatus
from .child import Child
from .time_slot import TimeSlot
from .booking import Booking, BookingStatus, RecurringBooking
from .leave import TherapistLeave, LeaveStatus, LeaveType
from .notification import Notification, NotificationStatus, NotificationType
from .feedback import SessionFeedback, SessionReport
from .audit_log import AuditLog, ActorType
from .demo import DemoSlot, DemoBooking, DemoBookingStatus
