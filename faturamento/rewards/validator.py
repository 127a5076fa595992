# ==============================================================================
# faturamento/rewards/validator.py
# ------------------------------------------------------------------------------
# Sanity checks for a band table edited by a unit administrator.
# ==============================================================================


def validate_bands(bands):
    """
    Checks a band table before it is saved.

    Args:
        bands (list[RewardBand]): the table as submitted.

    Returns:
        tuple: A tuple containing:
            - list: errors that block saving (negative values).
            - list: warnings worth showing but not blocking.
    """
    errors = []
    warnings = []

    negatives = [b for b in bands if b.threshold_percent < 0 or b.bonus_amount < 0]
    if negatives:
        errors.append(f"{len(negatives)} faixa(s) com percentual ou prêmio negativo.")

    # A missing "percentual" is read as 0, which would pay out on any sales at all
    unanchored = [b for b in bands if b.threshold_percent == 0]
    if unanchored:
        warnings.append(f"{len(unanchored)} faixa(s) sem percentual ou com percentual zero; "
                        f"pagam o prêmio com qualquer venda.")

    thresholds = [b.threshold_percent for b in bands]
    if thresholds != sorted(thresholds):
        warnings.append("Faixas não estão ordenadas por percentual.")

    if len(set(thresholds)) != len(thresholds):
        warnings.append("Existem faixas com percentuais duplicados.")

    if bands and 100 not in thresholds:
        warnings.append("Não há faixa configurada para 100% da meta.")

    zeroed = [b for b in bands if b.bonus_amount == 0]
    if zeroed:
        warnings.append(f"{len(zeroed)} faixa(s) com valor zero.")

    return errors, warnings
