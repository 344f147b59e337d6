from datetime import datetime

from memory_game import db


class KeyValue(db.Model):
    """Generic string store; the high score table lives under one key."""
    __tablename__ = 'key_value'
    key = db.Column(db.String(128), primary_key=True)
    value = db.Column(db.Text, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

