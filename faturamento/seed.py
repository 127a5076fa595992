import json
from faturamento import db
from faturamento.models import AppSetting
from faturamento.rewards.engine import (DEFAULT_BAND_PROFILE, DEFAULT_BAND_PROFILES,
                                        DEFAULT_COMMISSION_RATES, profile_to_dict)

DEFAULT_SETTINGS = {
    # key: [value, description, value_type]
    'COMMISSION_RATES': [
        json.dumps({'below_goal': DEFAULT_COMMISSION_RATES.below_goal,
                    'at_or_above_goal': DEFAULT_COMMISSION_RATES.at_or_above_goal}),
        'Taxas de comissão abaixo e a partir da meta (ex: 0.012 para 1,2%) (formato JSON)', 'json'
    ],
    'REWARD_BAND_PROFILES': [
        json.dumps({unit: profile_to_dict(p) for unit, p in DEFAULT_BAND_PROFILES.items()}),
        'Parâmetros das faixas de premiação padrão por unidade (formato JSON)', 'json'
    ],
    'DEFAULT_BAND_PROFILE': [
        json.dumps(profile_to_dict(DEFAULT_BAND_PROFILE)),
        'Parâmetros das faixas de premiação padrão para as demais unidades (formato JSON)', 'json'
    ],
}

def seed_data():
    """Populates the database with default business rules."""
    for key, data in DEFAULT_SETTINGS.items():
        setting = AppSetting.query.filter_by(key=key).first()
        if not setting:  # Only add if it doesn't exist
            setting = AppSetting(key=key, value=data[0], description=data[1], value_type=data[2])
            db.session.add(setting)
            print(f'Seeding setting: {key}')

    db.session.commit()
    print('Seeding complete.')
