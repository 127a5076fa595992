# ==============================================================================
# faturamento/rewards/engine.py
# ------------------------------------------------------------------------------
# Goal-based reward calculation: commission on total sales, or a fixed bonus
# picked from the unit's band table by percentage of goal achieved.
# Everything below CalculationConfig is pure and safe to call concurrently.
# ==============================================================================

import logging
import numbers
from bisect import bisect_right
from dataclasses import asdict, dataclass

from faturamento.models import AppSetting, REWARD_MODE_BONUS, REWARD_MODE_COMMISSION


@dataclass(frozen=True)
class RewardBand:
    threshold_percent: float
    bonus_amount: float

    @classmethod
    def from_document(cls, doc):
        return cls(threshold_percent=float(doc.get('percentual', 0) or 0),
                   bonus_amount=float(doc.get('premio', 0) or 0))

    def to_document(self):
        return {'percentual': self.threshold_percent, 'premio': self.bonus_amount}


@dataclass(frozen=True)
class CommissionRates:
    below_goal: float
    at_or_above_goal: float

    def __post_init__(self):
        # Settings arrive as JSON; numeric strings are accepted, anything else raises
        for name in ('below_goal', 'at_or_above_goal'):
            rate = float(getattr(self, name))
            if rate < 0:
                raise ValueError(f"Commission rate '{name}' cannot be negative: {rate}")
            object.__setattr__(self, name, rate)


@dataclass(frozen=True)
class BandProfile:
    """Everything needed to generate a unit's default band table."""
    start: float
    step: float
    cutoff: float
    initial: float
    increment_below: float
    increment_above: float
    upper_bound: float

    def __post_init__(self):
        values = asdict(self)
        for name, value in values.items():
            if isinstance(value, bool) or not isinstance(value, numbers.Number):
                raise TypeError(f"Band profile field '{name}' must be a number, got {value!r}")
            if value < 0:
                raise ValueError(f"Band profile field '{name}' cannot be negative: {value}")
        if self.step <= 0:
            raise ValueError(f"Band profile step must be greater than zero, got {self.step}")
        if self.cutoff < self.start:
            raise ValueError(f"Band profile cutoff ({self.cutoff}) is below its start ({self.start})")


DEFAULT_COMMISSION_RATES = CommissionRates(below_goal=0.012, at_or_above_goal=0.015)

# Units not listed here use DEFAULT_BAND_PROFILE, the lower of the two regimes.
DEFAULT_BAND_PROFILES = {
    'alphaville': BandProfile(start=35, step=5, cutoff=100, initial=200,
                              increment_below=200, increment_above=220, upper_bound=170),
}
DEFAULT_BAND_PROFILE = BandProfile(start=35, step=5, cutoff=100, initial=180,
                                   increment_below=180, increment_above=200, upper_bound=170)


# --- Configuration Loader Class ---

class CalculationConfig:
    """
    A singleton that loads the reward rules from the AppSetting table once.
    Reset `_instance` to None after editing a setting.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            logging.info("Creating and loading CalculationConfig instance...")
            instance = super(CalculationConfig, cls).__new__(cls)
            try:
                instance.load_settings()
            except Exception as e:
                logging.error(f"Could not load reward settings from database: {e}", exc_info=True)
                raise
            cls._instance = instance
            logging.info("CalculationConfig loaded successfully.")
        return cls._instance

    def load_settings(self):
        """Loads all settings from the AppSetting table into attributes."""
        settings = {s.key: s.get_value() for s in AppSetting.query.all()}

        rates = settings.get('COMMISSION_RATES')
        self.COMMISSION_RATES = CommissionRates(**rates) if rates else DEFAULT_COMMISSION_RATES

        profiles = settings.get('REWARD_BAND_PROFILES')
        if profiles:
            self.REWARD_BAND_PROFILES = {unit.lower(): BandProfile(**p) for unit, p in profiles.items()}
        else:
            self.REWARD_BAND_PROFILES = dict(DEFAULT_BAND_PROFILES)

        default_profile = settings.get('DEFAULT_BAND_PROFILE')
        self.DEFAULT_BAND_PROFILE = BandProfile(**default_profile) if default_profile else DEFAULT_BAND_PROFILE


# --- Band Table Generation ---

def profile_for_unit(unit_id, profiles=None, default_profile=None):
    profiles = DEFAULT_BAND_PROFILES if profiles is None else profiles
    default_profile = default_profile or DEFAULT_BAND_PROFILE
    return profiles.get((unit_id or '').strip().lower(), default_profile)


def generate_default_bands(unit_id, profiles=None, default_profile=None):
    """
    Builds the default band table of a unit: linear accrual of
    `increment_below` per step from `start` up to `cutoff`, then of
    `increment_above` per step up to `upper_bound`.
    """
    profile = profile_for_unit(unit_id, profiles, default_profile)
    bands = []

    percent, bonus = profile.start, profile.initial
    while percent <= profile.cutoff:
        bands.append(RewardBand(percent, bonus))
        bonus += profile.increment_below
        percent += profile.step

    bonus = (bands[-1].bonus_amount if bands else profile.initial) + profile.increment_above
    percent = profile.cutoff + profile.step
    while percent <= profile.upper_bound:
        bands.append(RewardBand(percent, bonus))
        bonus += profile.increment_above
        percent += profile.step

    return bands


# --- Reward Calculation ---

def percent_achieved(total_sales, target_amount):
    if not target_amount or target_amount <= 0:
        return 0.0
    return (total_sales / target_amount) * 100


def select_band(bands, percent):
    """
    Floor lookup: the band with the greatest threshold not above `percent`.
    Among equal thresholds the one listed last wins.
    """
    ordered = sorted(bands or [], key=lambda b: b.threshold_percent)
    index = bisect_right([b.threshold_percent for b in ordered], percent)
    return ordered[index - 1] if index else None


def compute_commission(total_sales, target_amount, rates=None):
    rates = rates or DEFAULT_COMMISSION_RATES
    goal_met = target_amount > 0 and total_sales >= target_amount
    rate = rates.at_or_above_goal if goal_met else rates.below_goal
    return total_sales * rate


def compute_bonus(total_sales, target_amount, bands):
    if target_amount <= 0:
        return 0.0
    band = select_band(bands, percent_achieved(total_sales, target_amount))
    return band.bonus_amount if band else 0.0


def compute_reward(goal, total_sales, bands=None, rates=None):
    """
    Computes the reward of a goal given the responsible's total sales.

    Args:
        goal: anything with `target_amount` and `reward_mode` (e.g. a Goal row).
        total_sales (float): sum of the responsible's sales in the goal period.
        bands (list[RewardBand]): the unit's band table, used in bonus mode.
        rates (CommissionRates): commission rates, defaults to 1.2% / 1.5%.

    Returns:
        float: the reward; 0 for unknown modes and non-positive targets in bonus mode.
    """
    target = float(goal.target_amount or 0)
    total = float(total_sales or 0)

    if goal.reward_mode == REWARD_MODE_COMMISSION:
        return compute_commission(total, target, rates)
    if goal.reward_mode == REWARD_MODE_BONUS:
        return compute_bonus(total, target, bands)

    logging.warning(f"Unknown reward mode '{goal.reward_mode}'; reward is 0.")
    return 0.0


def profile_to_dict(profile):
    return asdict(profile)
