# ==============================================================================
# faturamento/rewards/bands.py
# ------------------------------------------------------------------------------
# Storage of each unit's band table. A table is generated from the unit's
# profile the first time it is needed and is edited by hand afterwards.
# ==============================================================================

import json
import logging
from datetime import datetime

from faturamento import db
from faturamento.models import RewardBandTable
from .engine import CalculationConfig, RewardBand, generate_default_bands


def load_band_table(unit):
    """Returns the stored bands of a unit, or None if none were saved yet."""
    table = RewardBandTable.query.filter_by(unit=unit).first()
    if table is None:
        return None
    return [RewardBand.from_document(doc) for doc in json.loads(table.bands_json or '[]')]


def save_band_table(unit, bands):
    """Stores `bands` (sorted by threshold) as the unit's table."""
    ordered = sorted(bands, key=lambda b: b.threshold_percent)
    table = RewardBandTable.query.filter_by(unit=unit).first()
    if table is None:
        table = RewardBandTable(unit=unit)
        db.session.add(table)
    table.bands_json = json.dumps([b.to_document() for b in ordered], ensure_ascii=False)
    table.updated_at = datetime.utcnow()
    db.session.commit()
    logging.info(f"Saved {len(ordered)} reward bands to {table.path}.")
    return table


def default_bands_for(unit):
    config = CalculationConfig()
    return generate_default_bands(unit, config.REWARD_BAND_PROFILES, config.DEFAULT_BAND_PROFILE)


def get_or_generate_band_table(unit):
    bands = load_band_table(unit)
    if bands is not None:
        return bands
    bands = default_bands_for(unit)
    logging.info(f"No reward bands stored for '{unit}'; generated {len(bands)} default bands.")
    save_band_table(unit, bands)
    return bands
