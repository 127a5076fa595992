# ==============================================================================
# run.py
# ------------------------------------------------------------------------------
# The main entry point to launch the Flask application.
# ==============================================================================

from faturamento import create_app, db
from faturamento.models import AppSetting, DailyBucket, Goal, RewardBandTable

app = create_app()

@app.shell_context_processor
def make_shell_context():
    """Provides a shell context for the `flask shell` command."""
    return {
        'db': db,
        'AppSetting': AppSetting,
        'DailyBucket': DailyBucket,
        'Goal': Goal,
        'RewardBandTable': RewardBandTable
    }

if __name__ == '__main__':
    app.run(debug=True)
