from .user import User, ParentRegister, TherapistRegister
from .parent import Parent, ParentUpdate, Child, ChildCreate, ChildUpdate
from .therapist import Therapist, TherapistUpdate, ActiveTimesUpdate, TherapistStatusUpdate
from .slot import TimeSlot, SlotView, DaySlots, Availability
from .booking import (
    Booking,
    BookingCreate,
    BookingCancel,
    RecurringBooking,
    RecurringBookingCreate,
    RecurringBookingResult,
    RecurringBookingSummary,
    RecurringCancelResult,
    RecurringPreviewDay,
    SkippedDate,
    VideoCredentials,
)
from .leave import Leave, LeaveCreate, LeaveDecision, LeaveBalance
from .feedback import Feedback, FeedbackCreate, SessionReport, SessionReportCreate
from .notification import Notification
from .analytics import AdminAnalytics, TherapistAnalytics
from .demo import (
    AdminDemoSlot,
    DemoBooking,
    DemoBookingCreate,
    DemoBookingUpdate,
    DemoDay,
    DemoMonthSlots,
    DemoSlotView,
)
