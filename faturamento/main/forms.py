# ==============================================================================
# faturamento/main/forms.py
# ------------------------------------------------------------------------------
# Request shapes validated with Flask-WTF. The endpoints answer JSON, so the
# forms are only used for parsing and validation of multipart/form payloads.
# ==============================================================================

from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileRequired
from wtforms import StringField, SelectField
from wtforms.validators import DataRequired, InputRequired, Optional, Regexp

from faturamento.models import REWARD_MODE_BONUS, REWARD_MODE_COMMISSION

PERIOD_PATTERN = r'^\d{4}-(0[1-9]|1[0-2])$'


class UploadForm(FlaskForm):
    """Sales spreadsheet upload."""
    # Extension and MIME type are checked against the app config in the route
    file = FileField('Planilha', validators=[FileRequired(message="Nenhum arquivo recebido.")])
    unidade = StringField('Unidade', validators=[DataRequired(message="Unidade não especificada.")])
    autoConvertAdmin = StringField('Converter Administrador', validators=[Optional()], default='true')


class GoalForm(FlaskForm):
    """Form for adding or editing a responsible's monthly goal."""
    responsavel = StringField('Responsável', validators=[DataRequired(message="Informe o responsável.")])
    # Sent as 'meta'; the attribute name itself is taken by the form's options object
    target = StringField('Meta (R$)', name='meta',
                         validators=[DataRequired(message="Informe o valor da meta.")])
    periodo = StringField('Período', validators=[
        InputRequired(message="Informe o período."),
        Regexp(PERIOD_PATTERN, message="Período deve estar no formato AAAA-MM."),
    ])
    remuneracaoType = SelectField(
        'Tipo de remuneração',
        choices=[(REWARD_MODE_COMMISSION, 'Comissão'), (REWARD_MODE_BONUS, 'Premiação')],
        default=REWARD_MODE_COMMISSION,
        validators=[Optional()]
    )
