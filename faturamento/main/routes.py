# ==============================================================================
# faturamento/main/routes.py
# ------------------------------------------------------------------------------
# JSON endpoints of the main blueprint: spreadsheet upload, goals, band
# tables, reward report and business-rule settings.
# ==============================================================================

import json
import os
import re

from flask import current_app, jsonify, request

from faturamento import db
from faturamento.ingestion import IngestionError, InvalidInput, ingest
from faturamento.ingestion.pipeline import resolve_unit
from faturamento.main import bp
from faturamento.main.forms import PERIOD_PATTERN, GoalForm, UploadForm
from faturamento.main.utils import parse_br_number, summarize_period_rewards
from faturamento.models import AppSetting, Goal
from faturamento.rewards.bands import default_bands_for, get_or_generate_band_table, save_band_table
from faturamento.rewards.engine import CalculationConfig, RewardBand
from faturamento.rewards.validator import validate_bands

# --- Helper Functions ---

def allowed_file(filename):
    """Checks if the file extension is allowed based on the app config."""
    return '.' in filename and \
           os.path.splitext(filename)[1].lower() in current_app.config['ALLOWED_EXTENSIONS']

def _error(message, status_code=400):
    return jsonify({'success': False, 'error': message}), status_code

def _first_form_error(form):
    for messages in form.errors.values():
        if messages:
            return messages[0]
    return 'Requisição inválida.'

def _is_true(value):
    return str(value or 'true').strip().lower() == 'true'

def _bands_response(unit, bands, warnings=None):
    return jsonify({
        'success': True,
        'unidade': unit,
        'premiacao': [b.to_document() for b in bands],
        'avisos': warnings or [],
    })

# --- Error Handlers ---

@bp.app_errorhandler(IngestionError)
def handle_ingestion_error(e):
    current_app.logger.warning(f"Request rejected: {e.message}")
    return jsonify(e.to_dict()), e.status_code

@bp.app_errorhandler(413)
def handle_too_large(e):
    return _error('Arquivo excede o tamanho máximo permitido.', 413)

@bp.app_errorhandler(404)
def handle_not_found(e):
    return _error('Recurso não encontrado.', 404)

# --- Upload ---

@bp.route('/upload', methods=['POST'])
def upload():
    """Ingests a sales spreadsheet for one unit."""
    if request.mimetype != 'multipart/form-data':
        return _error('Envie o arquivo como multipart/form-data.', 415)

    form = UploadForm()
    if not form.validate():
        return _error(_first_form_error(form))

    file = form.file.data
    if not allowed_file(file.filename):
        return _error('Apenas arquivos Excel (.xls, .xlsx) são permitidos.')
    if file.mimetype and file.mimetype not in current_app.config['ALLOWED_MIME_TYPES']:
        return _error('Apenas arquivos Excel (.xls, .xlsx) são permitidos.')

    current_app.logger.info(f"Upload received: '{file.filename}' for unit '{form.unidade.data}'")
    try:
        stats = ingest(file.read(), form.unidade.data,
                       auto_convert_admin=_is_true(form.autoConvertAdmin.data))
    except IngestionError as e:
        current_app.logger.warning(f"Upload '{file.filename}' rejected: {e.message}")
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Unexpected failure while ingesting '{file.filename}': {e}", exc_info=True)
        return _error('Erro interno no servidor.', 500)

    response = {
        'success': True,
        'message': f"Arquivo processado com sucesso. {stats['rows_processed']} venda(s) "
                   f"registrada(s) em {stats['days_written']} dia(s).",
        'estatisticas': {
            'totalLinhas': stats['total_rows'],
            'linhasProcessadas': stats['rows_processed'],
            'linhasComErro': stats['rows_with_errors'],
            'diasProcessados': stats['days_written'],
        },
    }
    if stats['has_warnings']:
        response['aviso'] = (f"{stats['rows_with_errors']} linha(s) ignorada(s) por data inválida "
                             f"ou erro de leitura.")
    return jsonify(response), 200

# --- Goals ---

@bp.route('/unidades/<unit>/metas', methods=['GET'])
def list_goals(unit):
    unit = resolve_unit(unit)
    query = Goal.query.filter_by(unit=unit)
    period = request.args.get('periodo')
    if period:
        query = query.filter_by(period=period)
    goals = query.order_by(Goal.period.desc(), Goal.responsible).all()
    return jsonify({'success': True, 'metas': [g.to_document() for g in goals]})

def _goal_from_form(form, goal):
    target = parse_br_number(form.target.data)
    if target <= 0:
        raise InvalidInput('A meta deve ser maior que zero.')
    goal.responsible = form.responsavel.data.strip()
    goal.target_amount = target
    goal.period = form.periodo.data
    goal.reward_mode = form.remuneracaoType.data
    return goal

@bp.route('/unidades/<unit>/metas', methods=['POST'])
def add_goal(unit):
    unit = resolve_unit(unit)
    form = GoalForm()
    if not form.validate():
        return _error(_first_form_error(form))
    goal = _goal_from_form(form, Goal(unit=unit))
    db.session.add(goal)
    db.session.commit()
    current_app.logger.info(f"Goal created at {goal.path}")
    return jsonify({'success': True, 'meta': goal.to_document()}), 201

@bp.route('/unidades/<unit>/metas/<int:goal_id>', methods=['PUT'])
def edit_goal(unit, goal_id):
    unit = resolve_unit(unit)
    goal = Goal.query.filter_by(unit=unit, id=goal_id).first_or_404()
    form = GoalForm()
    if not form.validate():
        return _error(_first_form_error(form))
    _goal_from_form(form, goal)
    db.session.commit()
    return jsonify({'success': True, 'meta': goal.to_document()})

@bp.route('/unidades/<unit>/metas/<int:goal_id>', methods=['DELETE'])
def delete_goal(unit, goal_id):
    unit = resolve_unit(unit)
    goal = Goal.query.filter_by(unit=unit, id=goal_id).first_or_404()
    db.session.delete(goal)
    db.session.commit()
    current_app.logger.info(f"Goal {goal_id} of '{unit}' deleted")
    return jsonify({'success': True})

# --- Reward Bands ---

@bp.route('/unidades/<unit>/premiacao', methods=['GET'])
def get_bands(unit):
    unit = resolve_unit(unit)
    return _bands_response(unit, get_or_generate_band_table(unit))

@bp.route('/unidades/<unit>/premiacao', methods=['PUT'])
def update_bands(unit):
    unit = resolve_unit(unit)
    payload = request.get_json(silent=True) or {}
    documents = payload.get('premiacao')
    if not isinstance(documents, list):
        raise InvalidInput('Envie as faixas no campo "premiacao".')
    try:
        bands = [RewardBand.from_document(doc) for doc in documents]
    except (AttributeError, TypeError, ValueError):
        raise InvalidInput('Faixas devem conter "percentual" e "premio" numéricos.')

    errors, warnings = validate_bands(bands)
    if errors:
        return _error(' '.join(errors))
    save_band_table(unit, bands)
    return _bands_response(unit, sorted(bands, key=lambda b: b.threshold_percent), warnings)

@bp.route('/unidades/<unit>/premiacao/gerar', methods=['POST'])
def regenerate_bands(unit):
    """Replaces the unit's table with freshly generated default bands."""
    unit = resolve_unit(unit)
    bands = default_bands_for(unit)
    save_band_table(unit, bands)
    return _bands_response(unit, bands)

# --- Reward Report ---

@bp.route('/unidades/<unit>/remuneracao', methods=['GET'])
def reward_report(unit):
    unit = resolve_unit(unit)
    period = request.args.get('periodo', '')
    if not re.match(PERIOD_PATTERN, period):
        return _error('Período deve estar no formato AAAA-MM.')
    return jsonify({'success': True, 'periodo': period,
                    'remuneracoes': summarize_period_rewards(unit, period)})

# --- Settings ---

@bp.route('/configuracoes', methods=['GET'])
def list_settings():
    settings = AppSetting.query.order_by(AppSetting.key).all()
    return jsonify({'success': True, 'configuracoes': [
        {'key': s.key, 'value': s.get_value(), 'description': s.description} for s in settings
    ]})

@bp.route('/configuracoes/<key>', methods=['PUT'])
def edit_setting(key):
    setting = AppSetting.query.filter_by(key=key).first_or_404()
    payload = request.get_json(silent=True)
    if not payload or 'value' not in payload:
        raise InvalidInput('Envie o novo valor no campo "value".')

    new_value = payload['value']
    if setting.value_type == 'json':
        new_value = json.dumps(new_value, ensure_ascii=False)
    setting.value = str(new_value)
    CalculationConfig._instance = None
    try:
        setting.get_value()
        # Reloading validates the new rule against the shapes the engine expects
        CalculationConfig()
    except (AttributeError, TypeError, ValueError):
        db.session.rollback()
        CalculationConfig._instance = None
        return _error(f'Valor inválido para "{key}".')
    db.session.commit()
    current_app.logger.info(f"Setting '{key}' updated; calculation config reloaded.")
    return jsonify({'success': True, 'key': key, 'value': setting.get_value()})
