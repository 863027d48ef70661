import os
from unittest import mock

from django.conf import settings
from django.test import SimpleTestCase
from rest_framework.throttling import UserRateThrottle

from django_project import settings as project_settings
from examination_system.api.throttles import AdminBypassUserRateThrottle


class SettingsHelperTests(SimpleTestCase):
    def test_env_list_splits_and_trims(self):
        os.environ["DJANGO_TEST_LIST"] = " alpha ,beta,, gamma "
        self.addCleanup(os.environ.pop, "DJANGO_TEST_LIST", None)

        result = project_settings.env_list("DJANGO_TEST_LIST")
        self.assertEqual(result, ["alpha", "beta", "gamma"])

    def test_env_list_default_when_unset(self):
        os.environ.pop("DJANGO_TEST_LIST", None)
        self.assertEqual(project_settings.env_list("DJANGO_TEST_LIST", "a,b"), ["a", "b"])
        self.assertEqual(project_settings.env_list("DJANGO_TEST_LIST"), [])

    def test_env_flag_accepts_truthy_words(self):
        self.addCleanup(os.environ.pop, "DJANGO_TEST_FLAG", None)
        for raw, expected in (("1", True), (" Yes ", True), ("on", True), ("off", False), ("", False)):
            with self.subTest(raw=raw):
                os.environ["DJANGO_TEST_FLAG"] = raw
                self.assertEqual(project_settings.env_flag("DJANGO_TEST_FLAG"), expected)

    def test_seating_defaults_are_configured(self):
        self.assertEqual(set(settings.SEATING), {"ROOM_PREFIX", "SEAT_PREFIX", "STUDENTS_PER_ROOM", "MAX_PAGE_SIZE"})
        self.assertGreaterEqual(settings.SEATING["STUDENTS_PER_ROOM"], 1)


class AdminBypassThrottleTests(SimpleTestCase):
    def _request(self, **user_attrs):
        user = mock.Mock(is_authenticated=True, **user_attrs)
        return mock.Mock(user=user)

    def test_admins_are_never_throttled(self):
        throttle = AdminBypassUserRateThrottle()
        with mock.patch.object(UserRateThrottle, "allow_request") as parent:
            self.assertTrue(throttle.allow_request(self._request(is_admin_role=True), view=None))
        parent.assert_not_called()

    def test_other_users_use_the_rate_limit(self):
        throttle = AdminBypassUserRateThrottle()
        with mock.patch.object(UserRateThrottle, "allow_request", return_value=False) as parent:
            self.assertFalse(throttle.allow_request(self._request(is_admin_role=False), view=None))
        parent.assert_called_once()
