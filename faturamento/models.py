# ==============================================================================
# faturamento/models.py
# ------------------------------------------------------------------------------
# Defines the database schema using SQLAlchemy ORM models.
# Each model mirrors one document of the legacy store and exposes its
# path and document shape so existing consumers keep working.
# ==============================================================================

import json
from datetime import datetime
from faturamento import db

STORE_ROOT = 'faturamento'

REWARD_MODE_COMMISSION = 'comissao'
REWARD_MODE_BONUS = 'premiacao'
REWARD_MODES = (REWARD_MODE_COMMISSION, REWARD_MODE_BONUS)


def _iso(value):
    return value.isoformat() if value is not None else None


class DailyBucket(db.Model):
    """
    All sales of one unit on one calendar day.
    A bucket is rewritten as a whole every time an upload touches its day.
    """
    __tablename__ = 'daily_bucket'
    id = db.Column(db.Integer, primary_key=True)
    unit = db.Column(db.String(64), nullable=False, index=True)
    year = db.Column(db.String(4), nullable=False)
    month = db.Column(db.String(2), nullable=False)
    day = db.Column(db.String(2), nullable=False)
    date = db.Column(db.String(10), nullable=False, index=True)  # YYYY-MM-DD
    sales_json = db.Column(db.Text, nullable=False, default='[]')
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    processed_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (db.UniqueConstraint('unit', 'year', 'month', 'day', name='_unit_day_uc'),)

    @property
    def path(self):
        return f'{STORE_ROOT}/{self.unit}/{self.year}/{self.month}/dias/{self.day}'

    @property
    def sales(self):
        return json.loads(self.sales_json or '[]')

    @sales.setter
    def sales(self, documents):
        self.sales_json = json.dumps(documents, ensure_ascii=False)

    def to_document(self):
        return {
            'date': self.date,
            'sales': self.sales,
            'createdAt': _iso(self.created_at),
            'processedAt': _iso(self.processed_at),
        }

    def __repr__(self):
        return f'<DailyBucket {self.path}>'


class Goal(db.Model):
    """
    A sales target for one responsible in one month.
    Sales are matched to the goal by normalized responsible name, not by key.
    """
    __tablename__ = 'goal'
    id = db.Column(db.Integer, primary_key=True)
    unit = db.Column(db.String(64), nullable=False, index=True)
    responsible = db.Column(db.String(128), nullable=False)
    period = db.Column(db.String(7), nullable=False, index=True)  # YYYY-MM
    target_amount = db.Column(db.Float, nullable=False, default=0)
    reward_mode = db.Column(db.String(16), nullable=False, default=REWARD_MODE_COMMISSION)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @property
    def path(self):
        return f'{STORE_ROOT}/{self.unit}/metas/{self.id}'

    def to_document(self):
        return {
            'id': self.id,
            'responsavel': self.responsible,
            'periodo': self.period,
            'meta': self.target_amount,
            'remuneracaoType': self.reward_mode,
            'createdAt': _iso(self.created_at),
        }

    def __repr__(self):
        return f'<Goal {self.id}: {self.responsible} {self.period}>'


class RewardBandTable(db.Model):
    """
    The bonus bands of one unit, stored as the legacy
    `{premiacao: [{percentual, premio}], updatedAt}` document.
    """
    __tablename__ = 'reward_band_table'
    id = db.Column(db.Integer, primary_key=True)
    unit = db.Column(db.String(64), unique=True, nullable=False, index=True)
    bands_json = db.Column(db.Text, nullable=False, default='[]')
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def path(self):
        return f'{STORE_ROOT}/{self.unit}/configRemuneracao/premiacao'

    def to_document(self):
        return {'premiacao': json.loads(self.bands_json or '[]'), 'updatedAt': _iso(self.updated_at)}

    def __repr__(self):
        return f'<RewardBandTable {self.unit}>'


class AppSetting(db.Model):
    """
    Key-value business rules (commission rates, band profiles) editable
    without a deploy. Values are stored as strings and cast on read.
    """
    __tablename__ = 'app_setting'
    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(128), unique=True, nullable=False, index=True)
    value = db.Column(db.Text, nullable=False)
    description = db.Column(db.String(512))
    value_type = db.Column(db.String(32), default='string')  # 'float', 'int', 'string', 'json'

    def __repr__(self):
        return f'<AppSetting {self.key}: {self.value}>'

    def get_value(self):
        """Casts the string value to its correct Python type."""
        if self.value_type == 'float':
            return float(self.value)
        if self.value_type == 'int':
            return int(self.value)
        if self.value_type == 'json':
            return json.loads(self.value)
        return self.value
