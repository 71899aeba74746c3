# db/models.py
"""
Supabase does not require ORM model classes.
Tables used by the academy dashboard and the notification handlers:

Table: members
- id (uuid, PK)
- member_id (text, display id e.g. AS1234)
- barcode (text, unique)
- full_name (text)
- gender (male | female)
- phone_number (text)
- date_of_birth (date, nullable)
- notes (text)
- created_at (timestamp)

Table: member_services
- id (uuid, PK)
- member_id (uuid, FK → members.id)
- zone (zone_type)
- subscription_plan (subscription_plan)
- start_date (date)
- expiry_date (date)
- is_active (bool)
- freeze_status (frozen | suspended | null)

Table: payment_receipts
- id, member_id, amount, payment_method, subscription_plan, zone,
  transaction_id (shared by split payments), cashier_name, created_at

Table: attendance
- id, member_id, zone, status (active | expired), check_in_time

Table: coaches
- id, name, is_active

Table: sessions / session_bookings
- sessions: id, title, session_type, session_date, start_time, end_time,
  coach_id (FK → coaches.id), max_capacity, zone, notes
- session_bookings: id, session_id, member_id, status (booked | cancelled),
  unique (session_id, member_id)

Table: membership_freezes
- id, member_id, service_id, action_type (freeze | suspend), freeze_start,
  freeze_end, reason, notes, status (active | completed), created_by,
  resumed_at, resumed_by

Table: notification_settings
- setting_key (text, unique), setting_value (jsonb)

Table: notification_templates
- id, name, type, message_template, subject, channels (text[]),
  trigger_days (int[]), is_active

Table: notification_queue
- id, member_id, template_id, notification_type, channel, recipient,
  subject, message, variables (jsonb), scheduled_at, status
  (pending | sent | failed), sent_at, error_message, retry_count

Table: notifications (in-app)
- id, member_id, title, message, type, is_read

Table: whatsapp_receipt_logs
- id, member_id, phone, status, pdf_url, sent_at, error_message

Table: financial_audit_trail / deleted_members_log
- audit: table_name, record_id, action_type, action_by, description
- deleted log: original_member_id, member_data (jsonb), deleted_by
"""

MEMBERS = "members"
MEMBER_SERVICES = "member_services"
PAYMENT_RECEIPTS = "payment_receipts"
ATTENDANCE = "attendance"
COACHES = "coaches"
SESSIONS = "sessions"
SESSION_BOOKINGS = "session_bookings"
MEMBERSHIP_FREEZES = "membership_freezes"
AUDIT_TRAIL = "financial_audit_trail"
DELETED_MEMBERS_LOG = "deleted_members_log"
NOTIFICATION_SETTINGS = "notification_settings"
NOTIFICATION_TEMPLATES = "notification_templates"
NOTIFICATION_QUEUE = "notification_queue"
NOTIFICATIONS = "notifications"
WHATSAPP_LOGS = "whatsapp_receipt_logs"

# notification_queue.status
STATUS_PENDING = "pending"
STATUS_SENT = "sent"
STATUS_FAILED = "failed"

# notification_templates.type / notification_queue.notification_type
TYPE_EXPIRY_REMINDER = "expiry_reminder"
TYPE_BIRTHDAY = "birthday"

SYSTEM_ACTOR = "system-auto"
