# app/domain/constants.py
COURSE = "course"
STORE_ITEM = "storeItem"
ITEM_TYPES = (COURSE, STORE_ITEM)

# Order.payment_status: pending -> completed | failed, completed -> refunded
PENDING = "pending"
COMPLETED = "completed"
FAILED = "failed"
REFUNDED = "refunded"
PAYMENT_STATUSES = (PENDING, COMPLETED, FAILED, REFUNDED)

METHOD_GATEWAY = "razorpay"
METHOD_FREE = "free"
