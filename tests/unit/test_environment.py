"""
Unit tests for the sendfile environment probe.
"""

import os

import pytest

from filedelivery.delivery.environment import SendfileEnvironment, SendfileMode


class TestHeaderFor:
    """Tests for SendfileEnvironment.header_for()."""

    def test_x_accel_redirect(self):
        env = SendfileEnvironment(SendfileMode.X_ACCEL_REDIRECT)

        assert env.header_for("/srv/files/a.pdf") == ("X-Accel-Redirect", "/protected/a.pdf")

    def test_internal_path_gets_trailing_slash(self):
        env = SendfileEnvironment(SendfileMode.X_ACCEL_REDIRECT, internal_path="/internal")

        assert env.header_for("/srv/a.pdf") == ("X-Accel-Redirect", "/internal/a.pdf")

    def test_per_file_internal_path(self):
        env = SendfileEnvironment(SendfileMode.X_ACCEL_REDIRECT)

        assert env.header_for("/srv/a.pdf", "/media/") == ("X-Accel-Redirect", "/media/a.pdf")

    def test_x_sendfile_absolute_path(self):
        env = SendfileEnvironment(SendfileMode.X_SENDFILE)

        assert env.header_for("rel/a.pdf") == ("X-Sendfile", os.path.abspath("rel/a.pdf"))

    def test_unavailable(self):
        env = SendfileEnvironment()

        assert env.available is False
        with pytest.raises(RuntimeError):
            env.header_for("/srv/a.pdf")


class TestParse:
    """Tests for SendfileEnvironment.parse()."""

    @pytest.mark.parametrize("value, mode", [
        ("off", SendfileMode.NONE),
        ("", SendfileMode.NONE),
        (None, SendfileMode.NONE),
        ("NGINX", SendfileMode.X_ACCEL_REDIRECT),
        ("x-accel-redirect", SendfileMode.X_ACCEL_REDIRECT),
        ("apache", SendfileMode.X_SENDFILE),
        ("litespeed", SendfileMode.X_SENDFILE),
        ("x-sendfile", SendfileMode.X_SENDFILE),
    ])
    def test_aliases(self, value, mode):
        assert SendfileEnvironment.parse(value).mode is mode

    def test_internal_path_kept(self):
        env = SendfileEnvironment.parse("nginx", internal_path="/dl/")

        assert env.internal_path == "/dl/"

    def test_unknown(self):
        with pytest.raises(ValueError):
            SendfileEnvironment.parse("iis")


class TestDetect:
    """Tests for SendfileEnvironment.detect()."""

    def test_nginx(self):
        env = SendfileEnvironment.detect("nginx/1.25.3")

        assert env.mode is SendfileMode.X_ACCEL_REDIRECT

    def test_apache_with_module(self):
        env = SendfileEnvironment.detect("Apache/2.4.58 (Unix)", xsendfile_module=True)

        assert env.mode is SendfileMode.X_SENDFILE

    def test_apache_without_module(self):
        """Test that Apache alone is not enough for X-Sendfile."""
        env = SendfileEnvironment.detect("Apache/2.4.58 (Unix)")

        assert env.mode is SendfileMode.NONE

    def test_unknown_server(self):
        assert SendfileEnvironment.detect(None).available is False
        assert SendfileEnvironment.detect("Microsoft-IIS/10.0", True).available is False
