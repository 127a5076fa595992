# ==============================================================================
# faturamento/main/utils.py
# ------------------------------------------------------------------------------
# Sales lookups behind the reward report: which stored sales belong to a
# goal, and what each goal pays for a period.
# ==============================================================================

from faturamento.ingestion.normalizer import parse_amount
from faturamento.models import DailyBucket, Goal, REWARD_MODE_BONUS
from faturamento.rewards.bands import default_bands_for, load_band_table
from faturamento.rewards.engine import CalculationConfig, compute_reward, percent_achieved


def parse_br_number(value):
    """'10.000,50' -> 10000.5; numbers pass through."""
    return parse_amount(value)


def normalize_responsible(name):
    """Goals and sales are matched on this: trimmed, case-insensitive."""
    return str(name or '').strip().lower()


def sales_for_period(unit, period):
    """All stored sale documents of a unit in a 'YYYY-MM' period."""
    year, month = period.split('-')
    buckets = (DailyBucket.query
               .filter_by(unit=unit, year=year, month=month)
               .order_by(DailyBucket.day)
               .all())
    return [sale for bucket in buckets for sale in bucket.sales]


def total_sales_for(responsible, sales):
    key = normalize_responsible(responsible)
    return sum(float(s.get('valor') or 0) for s in sales
               if normalize_responsible(s.get('responsavel')) == key)


def summarize_period_rewards(unit, period):
    """
    Computes the reward of every goal a unit has for a period.

    Returns:
        list: one dict per goal with the responsible, mode, target, total
              sales, percentage achieved and reward.
    """
    goals = Goal.query.filter_by(unit=unit, period=period).order_by(Goal.responsible).all()
    sales = sales_for_period(unit, period)
    config = CalculationConfig()

    bands = None
    if any(g.reward_mode == REWARD_MODE_BONUS for g in goals):
        bands = load_band_table(unit)
        if bands is None:
            bands = default_bands_for(unit)

    summary = []
    for goal in goals:
        total = total_sales_for(goal.responsible, sales)
        summary.append({
            'metaId': goal.id,
            'responsavel': goal.responsible,
            'remuneracaoType': goal.reward_mode,
            'meta': goal.target_amount,
            'totalVendas': total,
            'percentualAtingido': percent_achieved(total, goal.target_amount),
            'remuneracao': compute_reward(goal, total, bands, config.COMMISSION_RATES),
        })
    return summary
