# User value: This file verifies feature-flag and startup checks so a misconfigured deploy fails fast.
import importlib
import os
import unittest
from unittest import mock

import startup_env

_FULL_ENV = {
    "CLOUDCONVERT_API_KEY": "cc-key",
    "CLOUDINARY_CLOUD_NAME": "demo",
    "CLOUDINARY_API_KEY": "cl-key",
    "CLOUDINARY_API_SECRET": "cl-secret",
    "GEMINI_API_KEY": "gm-key",
    "REDIS_URL": "redis://localhost:6379/0",
    "CORS_ALLOW_ORIGINS": "http://localhost:3000",
    "YOUTUBE_COOKIE": "SID=abc",
}


class FeatureFlagsUnitTests(unittest.TestCase):
    def setUp(self):
        self._old = os.environ.get("FEATURE_TEXT_TOOLS")

    def tearDown(self):
        if self._old is None:
            os.environ.pop("FEATURE_TEXT_TOOLS", None)
        else:
            os.environ["FEATURE_TEXT_TOOLS"] = self._old
        import services.feature_flags as ff

        importlib.reload(ff)

    def test_text_tools_flag_enabled(self):
        os.environ["FEATURE_TEXT_TOOLS"] = "1"
        import services.feature_flags as ff

        ff = importlib.reload(ff)
        self.assertTrue(ff.is_text_tools_enabled())
        self.assertTrue(ff.capabilities()["text_tools_enabled"])

    def test_text_tools_flag_disabled(self):
        os.environ["FEATURE_TEXT_TOOLS"] = "off"
        import services.feature_flags as ff

        ff = importlib.reload(ff)
        self.assertFalse(ff.is_text_tools_enabled())
        self.assertFalse(ff.capabilities()["text_tools_enabled"])

    def test_validate_bool_flag_env_rejects_invalid(self):
        errors = []
        os.environ["FEATURE_TEXT_TOOLS"] = "maybe"
        startup_env._validate_bool_flag_env("FEATURE_TEXT_TOOLS", errors)
        self.assertTrue(errors)
        self.assertIn("FEATURE_TEXT_TOOLS must be one of", errors[0])


class StartupEnvUnitTests(unittest.TestCase):
    def _flags(self, **values):
        defaults = {
            "is_document_conversion_enabled": True,
            "is_background_removal_enabled": True,
            "is_text_tools_enabled": True,
            "is_transcription_enabled": True,
            "is_conversion_log_enabled": True,
        }
        defaults.update(values)
        return [mock.patch(f"services.feature_flags.{name}", return_value=value) for name, value in defaults.items()]

    def _validate(self, env: dict, **flags):
        patches = self._flags(**flags)
        for p in patches:
            p.start()
        self.addCleanup(mock.patch.stopall)
        with mock.patch.dict(os.environ, env, clear=True):
            startup_env.validate_startup_env()

    def test_full_env_passes(self):
        self._validate(dict(_FULL_ENV))

    def test_missing_credentials_of_enabled_feature_fail_fast(self):
        env = dict(_FULL_ENV)
        env.pop("CLOUDCONVERT_API_KEY")
        with self.assertRaises(RuntimeError) as ctx:
            self._validate(env)
        self.assertIn("CLOUDCONVERT_API_KEY is required", str(ctx.exception))

    def test_disabled_feature_does_not_need_credentials(self):
        env = dict(_FULL_ENV)
        env.pop("CLOUDCONVERT_API_KEY")
        env.pop("CLOUDINARY_API_SECRET")
        self._validate(env, is_document_conversion_enabled=False, is_background_removal_enabled=False)

    def test_gemini_needed_by_transcription_alone(self):
        env = dict(_FULL_ENV)
        env.pop("GEMINI_API_KEY")
        with self.assertRaises(RuntimeError):
            self._validate(env, is_text_tools_enabled=False)

    def test_redis_url_only_required_for_conversion_log(self):
        env = dict(_FULL_ENV)
        env["REDIS_URL"] = "http://not-redis"
        with self.assertRaises(RuntimeError):
            self._validate(env)
        self._validate(env, is_conversion_log_enabled=False)

    def test_wildcard_cors_rejected(self):
        env = dict(_FULL_ENV)
        env["CORS_ALLOW_ORIGINS"] = "*"
        with self.assertRaises(RuntimeError):
            self._validate(env)

    def test_negative_wait_timeout_rejected(self):
        env = dict(_FULL_ENV)
        env["CLOUDCONVERT_WAIT_TIMEOUT_SEC"] = "-1"
        with self.assertRaises(RuntimeError):
            self._validate(env)
        env["CLOUDCONVERT_WAIT_TIMEOUT_SEC"] = "0"
        self._validate(env)

    def test_wait_retry_settings_validated_at_startup(self):
        for key, bad in (
            ("CLOUDCONVERT_WAIT_RETRIES", "two"),
            ("CLOUDCONVERT_WAIT_RETRIES", "1.5"),
            ("CLOUDCONVERT_WAIT_RETRIES", "-1"),
            ("CLOUDCONVERT_RETRY_BACKOFF_SEC", "soon"),
            ("CLOUDCONVERT_RETRY_BACKOFF_SEC", "-0.5"),
        ):
            env = dict(_FULL_ENV)
            env[key] = bad
            with self.assertRaises(RuntimeError) as ctx:
                self._validate(env)
            self.assertIn(key, str(ctx.exception))

        env = dict(_FULL_ENV)
        env["CLOUDCONVERT_WAIT_RETRIES"] = "3"
        env["CLOUDCONVERT_RETRY_BACKOFF_SEC"] = "0"
        self._validate(env)


if __name__ == "__main__":
    unittest.main()
