import unittest
from unittest import mock
import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from calendar_model import CalendarData, WorkoutPlan
from client import CalendarClient


def fake_response(payload):
    resp = mock.Mock()
    resp.json.return_value = payload
    resp.raise_for_status.return_value = None
    return resp


class ClientTest(unittest.TestCase):
    def setUp(self) -> None:
        self.client = CalendarClient(base_url='http://testserver/')

    @mock.patch('client.requests.request')
    def test_schedule(self, request) -> None:
        request.return_value = fake_response({'status': 'added'})
        self.assertEqual(self.client.schedule('2024-06-01', 'p1'), 'added')
        request.assert_called_once_with(
            'POST',
            'http://testserver/schedule/2024-06-01',
            timeout=10.0,
            params={'plan_id': 'p1'},
        )

    @mock.patch('client.requests.request')
    def test_get_calendar(self, request) -> None:
        request.return_value = fake_response(
            {
                'plans': [{'id': 'p1', 'name': 'Leg Day', 'color': 'green', 'exercises': []}],
                'scheduledWorkouts': {'2024-06-01': ['p1']},
            }
        )
        calendar = self.client.get_calendar()
        self.assertEqual(calendar.scheduled_workouts, {'2024-06-01': ['p1']})
        self.assertEqual(calendar.plans[0].name, 'Leg Day')

    @mock.patch('client.requests.request')
    def test_put_calendar_sends_wire_shape(self, request) -> None:
        request.return_value = fake_response({'status': 'saved'})
        calendar = CalendarData(
            plans=[WorkoutPlan(id='p1', name='Leg Day', color='green')],
            scheduled_workouts={'2024-06-01': ['p1']},
        )
        self.client.put_calendar(calendar)
        sent = request.call_args.kwargs['json']
        self.assertEqual(sent['scheduledWorkouts'], {'2024-06-01': ['p1']})
        self.assertNotIn('duration', sent['plans'][0])

    @mock.patch('client.requests.request')
    def test_create_plan_and_drop(self, request) -> None:
        request.side_effect = [
            fake_response({'id': 'abc'}),
            fake_response({'status': 'discarded'}),
        ]
        self.assertEqual(self.client.create_plan('Pull', 'blue', ['row'], 40), 'abc')
        self.assertEqual(
            request.call_args.kwargs['json'],
            {'name': 'Pull', 'color': 'blue', 'exercises': ['row'], 'duration': 40},
        )
        self.assertEqual(self.client.drop('abc', 'sidebar'), 'discarded')

    @mock.patch('client.requests.request')
    def test_http_errors_propagate(self, request) -> None:
        resp = fake_response({})
        resp.raise_for_status.side_effect = RuntimeError('404')
        request.return_value = resp
        with self.assertRaises(RuntimeError):
            self.client.delete_plan('ghost')

if __name__ == '__main__':
    unittest.main()
