"""
Tests for file utilities and diagnostics.
"""

import tempfile
from pathlib import Path

import pytest


class TestFileUtils:
    """Tests for file utilities."""

    def test_sanitize_filename(self):
        """Test filename sanitization."""
        from utils.file_utils import sanitize_filename

        # Test invalid characters
        assert sanitize_filename('file<>:"/\\|?*.pdf') == 'file_.pdf'

        # Test reserved names
        assert sanitize_filename('CON.pdf') == '_CON.pdf'

        # Test length limit
        long_name = 'a' * 300 + '.pdf'
        result = sanitize_filename(long_name, max_length=50)
        assert len(result) <= 50
        assert result.endswith('.pdf')

        assert sanitize_filename('') == 'unnamed'

    def test_output_filename(self):
        """PDF name keeps everything before the final extension."""
        from utils.file_utils import output_filename

        assert output_filename('report.docx') == 'report.pdf'
        assert output_filename('Q3.final.xlsx') == 'Q3.final.pdf'
        assert output_filename('/home/user/docs/deck.pptx') == 'deck.pdf'
        assert output_filename('') == 'document.pdf'
        assert output_filename('bad:name?.docx') == 'bad_name_.pdf'

    def test_ensure_dir(self):
        """Test directory creation."""
        from utils.file_utils import ensure_dir

        with tempfile.TemporaryDirectory() as tmpdir:
            new_dir = Path(tmpdir) / 'subdir' / 'nested'
            result = ensure_dir(new_dir)

            assert result.exists()
            assert result.is_dir()

    def test_file_size(self):
        from utils.file_utils import get_file_size_mb

        assert get_file_size_mb(0) == '0.00 MB'
        assert get_file_size_mb(1024 * 1024 + 1024 * 256) == '1.25 MB'


class TestSystemHandOff:
    """Opening and printing finished files through the desktop."""

    @pytest.mark.parametrize("system, action, expected", [
        ('Darwin', 'open', ['open', '/tmp/out.pdf']),
        ('Darwin', 'print', ['lpr', '/tmp/out.pdf']),
        ('Linux', 'open', ['xdg-open', '/tmp/out.pdf']),
        ('Linux', 'print', ['lp', '/tmp/out.pdf']),
        ('FreeBSD', 'print', ['lp', '/tmp/out.pdf']),
    ])
    def test_unix_commands(self, monkeypatch, system, action, expected):
        from utils import file_utils

        calls = []
        monkeypatch.setattr(file_utils.platform, 'system', lambda: system)
        monkeypatch.setattr(file_utils.subprocess, 'run', lambda cmd, check: calls.append((cmd, check)))

        file_utils.open_with_system(Path('/tmp/out.pdf'), action)

        assert calls == [(expected, True)]

    def test_windows_print_verb(self, monkeypatch):
        """Windows prints through the shell's print verb."""
        from utils import file_utils

        calls = []
        monkeypatch.setattr(file_utils.platform, 'system', lambda: 'Windows')
        monkeypatch.setattr(file_utils.os, 'startfile', lambda path, verb: calls.append((path, verb)), raising=False)

        file_utils.open_with_system('C:\\out.pdf', 'print')

        assert calls == [('C:\\out.pdf', 'print')]

    def test_unknown_action(self):
        from utils.file_utils import open_with_system

        with pytest.raises(ValueError):
            open_with_system('/tmp/out.pdf', 'fax')


class TestDiagnostics:
    """Tests for the diagnostic report."""

    def test_report_sections(self):
        from utils.system_info import generate_diagnostic_report

        report = generate_diagnostic_report()

        assert "DOCUCONVERT PRO - DIAGNOSTIC REPORT" in report
        for section in ("PLATFORM:", "PYTHON:", "RENDERER:", "LIBRARIES:"):
            assert section in report
        assert "reportlab" in report

    def test_missing_dependencies_matches_renderer(self):
        from utils.system_info import get_missing_dependencies, get_renderer_info

        renderer = get_renderer_info()
        warnings = get_missing_dependencies()

        assert any('WeasyPrint' in w for w in warnings) != renderer['weasyprint_available']
        assert any('Poppler' in w for w in warnings) != renderer['poppler_available']


class TestStartup:
    """Log location and progress formatting used at startup and during runs."""

    def test_log_directory_in_source_tree(self, monkeypatch, tmp_path):
        import main

        monkeypatch.delattr(main.sys, '_MEIPASS', raising=False)
        monkeypatch.setattr(main, 'PROJECT_ROOT', tmp_path)

        assert main.get_log_directory() == tmp_path / 'logs'
        assert (tmp_path / 'logs').is_dir()

    def test_log_directory_falls_back_to_temp(self, monkeypatch, tmp_path):
        """An unusable preferred location falls back to the temp directory."""
        import main

        blocker = tmp_path / 'not_a_dir'
        blocker.write_text('x')
        monkeypatch.delattr(main.sys, '_MEIPASS', raising=False)
        monkeypatch.setattr(main, 'PROJECT_ROOT', blocker)
        monkeypatch.setattr(main.tempfile, 'gettempdir', lambda: str(tmp_path / 'tmp'))

        assert main.get_log_directory() == tmp_path / 'tmp' / 'DocuConvertPro' / 'logs'

    def test_installed_log_roots(self, monkeypatch, tmp_path):
        import main

        monkeypatch.setattr(main.Path, 'home', lambda: tmp_path)
        monkeypatch.setattr(main.sys, 'platform', 'darwin')
        assert main._installed_log_root() == tmp_path / 'Library' / 'Logs' / 'DocuConvertPro'

        monkeypatch.setattr(main.sys, 'platform', 'linux')
        assert main._installed_log_root() == tmp_path / '.local' / 'share' / 'DocuConvertPro' / 'logs'

    def test_elapsed_time_format(self):
        pytest.importorskip('tkinter')
        from gui.progress_dialog import format_elapsed

        assert format_elapsed(0) == '0:00'
        assert format_elapsed(65.7) == '1:05'
        assert format_elapsed(-3) == '0:00'


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
