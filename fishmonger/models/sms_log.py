import uuid

from ..extensions import db
from ..utils.timezone_utils import TimezoneUtils


class SmsLog(db.Model):
    """Append-only record of every SMS send attempt, successful or not"""
    __tablename__ = 'sms_log'

    id = db.Column(db.String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    telephone = db.Column(db.String(32), nullable=False)
    message = db.Column(db.Text, nullable=False)
    # Plain column: the log outlives deleted orders
    order_id = db.Column(db.String(32), nullable=True, index=True)
    sent_at = db.Column(db.DateTime(timezone=True), default=TimezoneUtils.utc_now,
                        nullable=False, index=True)
    success = db.Column(db.Boolean, nullable=False, default=True)
    error_message = db.Column(db.Text, nullable=True)

    def __repr__(self):
        state = 'ok' if self.success else f'failed: {self.error_message}'
        return f'<SmsLog order={self.order_id} {state}>'
