from unittest.mock import MagicMock, patch

from django.db import InterfaceError, OperationalError
from django.test import TestCase, override_settings

from menus.models import MenuSettings
from menus.services.transactions import run_in_transaction

from .helpers import create_user


@override_settings(DB_TRANSACTION_MAX_ATTEMPTS=3, DB_TRANSACTION_RETRY_DELAY=0)
class RunInTransactionTestCase(TestCase):
    def outside_atomic_block(self):
        connection = MagicMock()
        connection.in_atomic_block = False
        return patch('menus.services.transactions.connection', connection)

    def test_transient_error_is_retried(self):
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise OperationalError("connexion perdue")
            return 'ok'

        with self.outside_atomic_block() as connection:
            with self.assertLogs('menus.services.transactions', level='WARNING'):
                result = run_in_transaction(flaky)

        self.assertEqual(result, 'ok')
        self.assertEqual(len(calls), 3)
        self.assertEqual(connection.close.call_count, 2)

    def test_error_propagates_after_last_attempt(self):
        func = MagicMock(side_effect=InterfaceError("serveur fermé"))

        with self.outside_atomic_block():
            with self.assertLogs('menus.services.transactions', level='ERROR'):
                with self.assertRaises(InterfaceError):
                    run_in_transaction(func)

        self.assertEqual(func.call_count, 3)

    def test_other_errors_are_not_retried(self):
        func = MagicMock(side_effect=ValueError("données invalides"))

        with self.outside_atomic_block():
            with self.assertRaises(ValueError):
                run_in_transaction(func)

        self.assertEqual(func.call_count, 1)

    def test_single_attempt_inside_atomic_block(self):
        func = MagicMock(side_effect=OperationalError("verrou"))

        with self.assertRaises(OperationalError):
            run_in_transaction(func)

        self.assertEqual(func.call_count, 1)

    def test_failed_unit_is_rolled_back(self):
        user = create_user('transaction_tester')

        def write_then_fail():
            MenuSettings.objects.create(user=user, parameters={'version': 2})
            raise ValueError("échec après écriture")

        with self.assertRaises(ValueError):
            run_in_transaction(write_then_fail)

        self.assertFalse(MenuSettings.objects.filter(user=user).exists())

    def test_arguments_are_forwarded(self):
        self.assertEqual(run_in_transaction(lambda a, b=0: a + b, 2, b=3), 5)
