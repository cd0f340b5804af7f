"""
Application loading checks.

Run in a fresh interpreter so module import order matches a real process
start, not whatever the test session already imported.
"""

import os
import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _run_fresh(code):
    env = dict(os.environ, DJANGO_SETTINGS_MODULE='homehero.test_settings')
    return subprocess.run(
        [sys.executable, '-c', code],
        capture_output=True,
        text=True,
        cwd=PROJECT_ROOT,
        env=env,
    )


class TestApplicationLoads:

    def test_django_setup_succeeds(self):
        result = _run_fresh('import django; django.setup(); import core.models')
        assert result.returncode == 0, f"django.setup() failed:\n{result.stderr}"

    def test_models_import_before_rest_framework_views(self):
        code = (
            'import django; django.setup(); '
            'import core.models, core.exceptions, core.authentication; '
            'from rest_framework.views import APIView; '
            'print(core.authentication.IdentityTokenAuthentication.__name__)'
        )
        result = _run_fresh(code)
        assert result.returncode == 0, f"Import failed:\n{result.stderr}"
        assert result.stdout.strip() == 'IdentityTokenAuthentication'

    def test_url_configuration_loads(self):
        code = (
            'import django; django.setup(); '
            'from django.urls import resolve; '
            'print(resolve("/api/health/").func.view_class.__name__)'
        )
        result = _run_fresh(code)
        assert result.returncode == 0, f"URLconf failed to load:\n{result.stderr}"
        assert result.stdout.strip() == 'HealthCheckView'
