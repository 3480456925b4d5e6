import pytest
import io
import os
from datetime import datetime, timedelta
from unittest.mock import patch
from PIL import Image

from app import extensions
from app.extensions import db
from app.models import MaintenanceTask, Notification, FishPhoto
from app.services.notification_service import GROUP, REMINDER_LEAD_TIME


def make_image(fmt="PNG", size=(640, 480), color=(200, 30, 30)):
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    buffer.seek(0)
    return buffer


def in_days(days):
    return (datetime.now() + timedelta(days=days)).replace(microsecond=0).isoformat()


# 1. Integration Test: fish profile can be created, read, updated and deleted
def test_fish_profile_crud(client):
    created = client.post('/fish', json={
        'name': 'Volt',
        'species': 'Betta splendens',
        'variant': 'Veiltail',
        'acquisition_date': '2025-04-05'
    })
    assert created.status_code == 201
    fish_id = created.json['id']
    assert created.json['profile_picture'] == '🐠'
    assert created.json['acquisition_date'].startswith('2025-04-05')

    updated = client.patch(f'/fish/{fish_id}', json={'color': 'Red/Blue', 'age': '~8 months'})
    assert updated.status_code == 200
    assert updated.json['color'] == 'Red/Blue'
    assert updated.json['name'] == 'Volt'

    picture = client.patch(f'/fish/{fish_id}/profile-picture', json={
        'profile_picture': 'volt.png',
        'is_picture_emoji': False
    })
    assert picture.json['is_picture_emoji'] is False

    assert client.delete(f'/fish/{fish_id}').status_code == 204
    assert client.get(f'/fish/{fish_id}').status_code == 404


# 2. Integration Test: fish profile without a species is rejected
def test_fish_profile_missing_species(client):
    response = client.post('/fish', json={'name': 'Volt'})

    assert response.status_code == 400
    assert "species" in str(response.json)


# 3. Integration Test: tank logs can be searched and filtered by category
def test_tank_log_search_and_category(client, fish):
    client.post('/tank-logs', json={'title': 'Water test', 'description': 'Ammonia 0 ppm', 'category': 'Water Test',
                                    'ammonia': 0.0, 'ph': 7.0, 'log_datetime': '2025-01-01T09:00:00',
                                    'fish_id': fish.id})
    client.post('/tank-logs', json={'title': 'Feeding', 'description': 'Ate 3 pellets', 'category': 'Feeding',
                                    'log_datetime': '2025-01-02T09:00:00', 'fish_id': fish.id})

    all_logs = client.get('/tank-logs').json
    assert [l['title'] for l in all_logs] == ['Feeding', 'Water test']
    assert all_logs[1]['ph'] == 7.0
    assert all_logs[1]['summary'] == '2025-01-01 09:00 - Water test'

    searched = client.get('/tank-logs?search=pellets').json
    assert [l['title'] for l in searched] == ['Feeding']

    by_category = client.get('/tank-logs', query_string={'category': 'Water Test'}).json
    assert [l['title'] for l in by_category] == ['Water test']

    assert client.get('/tank-logs/categories').json == ['Feeding', 'Water Test']
    assert len(client.get(f'/fish/{fish.id}/tank-logs').json) == 2


# 4. Integration Test: tank log for an unknown fish is refused
def test_tank_log_unknown_fish(client):
    response = client.post('/tank-logs', json={'title': 'x', 'description': 'y', 'fish_id': 99})

    assert response.status_code == 404


# 5. Integration Test: tank log with a broken date is a bad request
def test_tank_log_invalid_date(client):
    response = client.post('/tank-logs', json={'title': 'x', 'description': 'y', 'log_datetime': 'last tuesday'})

    assert response.status_code == 400
    assert "log_datetime" in response.json['message']


# 6. Integration Test: recurring task with a zero interval is rejected and nothing is saved
def test_maintenance_recurring_zero_interval(client):
    response = client.post('/maintenance-tasks', json={
        'title': 'Water change',
        'is_recurring': True,
        'recurrence_frequency_days': 0
    })

    assert response.status_code == 400
    assert "recurring" in response.json['message']
    assert MaintenanceTask.query.count() == 0


# 7. Integration Test: an unknown category is a bad request
def test_maintenance_invalid_category(client):
    response = client.post('/maintenance-tasks', json={'title': 'Vacuum', 'category': 'Vacuuming'})

    assert response.status_code == 400


# 8. Integration Test: a new task reports its computed status
def test_maintenance_status(client):
    overdue = client.post('/maintenance-tasks', json={
        'title': 'Clean filter',
        'category': 'FilterCleaning',
        'scheduled_datetime': '2025-01-10T10:00:00'
    }).json
    upcoming = client.post('/maintenance-tasks', json={
        'title': 'Water change',
        'category': 'WaterChange',
        'scheduled_datetime': in_days(3)
    }).json

    assert overdue['status'] == 'Overdue'
    assert upcoming['status'] == 'Upcoming'

    status = client.get(f"/maintenance-tasks/{overdue['id']}/status").json
    assert status['status'] == 'Overdue'
    assert status['next_scheduled_datetime'] == '2025-01-10T10:00:00'

    listed = client.get('/maintenance-tasks').json
    assert [t['title'] for t in listed] == ['Clean filter', 'Water change']

    by_category = client.get('/maintenance-tasks?category=WaterChange').json
    assert [t['title'] for t in by_category] == ['Water change']


# 9. Integration Test: a future task gets a reminder one hour before it is due
def test_maintenance_schedules_reminder(client):
    task = client.post('/maintenance-tasks', json={
        'title': 'Water change',
        'description': '25% with dechlorinator',
        'scheduled_datetime': in_days(2)
    }).json

    reminders = Notification.query.filter_by(tag=task['notification_id'], group=GROUP).all()
    assert len(reminders) == 1
    reminder = reminders[0]
    assert reminder.title == "Volt Maintenance Reminder"
    assert "25% with dechlorinator" in reminder.message
    assert "Scheduled for:" in reminder.message
    assert reminder.deliver_at == datetime.fromisoformat(task['scheduled_datetime']) - REMINDER_LEAD_TIME

    # not shown until its delivery time
    assert client.get('/notifications').json == []
    assert len(client.get('/notifications?include_scheduled=true').json) == 1


# 10. Integration Test: rescheduling replaces the reminder, disabling removes it
def test_maintenance_reminder_follows_updates(client):
    task = client.post('/maintenance-tasks', json={'title': 'Trim plants', 'scheduled_datetime': in_days(2)}).json

    client.patch(f"/maintenance-tasks/{task['id']}", json={'scheduled_datetime': in_days(4)})
    reminders = Notification.query.filter_by(tag=task['notification_id']).all()
    assert len(reminders) == 1
    assert reminders[0].deliver_at > datetime.now() + timedelta(days=3)

    client.patch(f"/maintenance-tasks/{task['id']}", json={'notifications_enabled': False})
    assert Notification.query.filter_by(tag=task['notification_id']).count() == 0


# 11. Integration Test: a patch that breaks the recurrence rule is rejected
def test_maintenance_patch_invalid_recurrence(client):
    task = client.post('/maintenance-tasks', json={'title': 'Feed', 'scheduled_datetime': in_days(1)}).json

    response = client.patch(f"/maintenance-tasks/{task['id']}", json={
        'is_recurring': True,
        'recurrence_frequency_days': -1
    })

    assert response.status_code == 400
    assert client.get(f"/maintenance-tasks/{task['id']}").json['is_recurring'] is False


# 12. Integration Test: completing a recurring task moves it to its next occurrence
def test_maintenance_complete_recurring(client):
    task = client.post('/maintenance-tasks', json={
        'title': 'Weekly water change',
        'scheduled_datetime': '2025-01-10T10:00:00',
        'is_recurring': True,
        'recurrence_frequency_days': 7
    }).json
    assert task['status'] == 'Overdue'

    completed = client.post(f"/maintenance-tasks/{task['id']}/complete")
    assert completed.status_code == 200

    body = completed.json
    last_done = datetime.fromisoformat(body['last_completed_datetime'])
    assert datetime.fromisoformat(body['scheduled_datetime']) == last_done + timedelta(days=7)
    assert body['status'] == 'Upcoming'
    assert Notification.query.filter_by(tag=task['notification_id']).count() == 1


# 13. Integration Test: completing a one-off task keeps its time and drops its reminder
def test_maintenance_complete_one_off(client):
    scheduled = in_days(2)
    task = client.post('/maintenance-tasks', json={'title': 'Buy food', 'scheduled_datetime': scheduled}).json
    assert Notification.query.filter_by(tag=task['notification_id']).count() == 1

    body = client.post(f"/maintenance-tasks/{task['id']}/complete").json

    assert body['scheduled_datetime'] == scheduled
    assert body['last_completed_datetime'] is not None
    # still ahead of its scheduled time
    assert body['status'] == 'Upcoming'
    assert Notification.query.filter_by(tag=task['notification_id']).count() == 0


# 14. Integration Test: completed tasks can be hidden from the list
def test_maintenance_hide_completed(client):
    client.post('/maintenance-tasks', json={
        'title': 'Buy test kit',
        'scheduled_datetime': '2025-01-10T10:00:00',
        'last_completed_datetime': '2025-01-09T18:00:00'
    })
    client.post('/maintenance-tasks', json={'title': 'Water change', 'scheduled_datetime': in_days(2)})

    assert len(client.get('/maintenance-tasks').json) == 2
    shown = client.get('/maintenance-tasks?show_completed=false').json
    assert [t['title'] for t in shown] == ['Water change']


# 15. Integration Test: deleting a task deletes its reminder
def test_maintenance_delete(client):
    task = client.post('/maintenance-tasks', json={'title': 'Test water', 'scheduled_datetime': in_days(2)}).json

    assert client.delete(f"/maintenance-tasks/{task['id']}").status_code == 204
    assert client.get(f"/maintenance-tasks/{task['id']}").status_code == 404
    assert Notification.query.count() == 0


# 16. Integration Test: plant issues can be added and resolved
def test_plant_issues(client, fish):
    plant = client.post('/plants', json={
        'name': 'Java Fern',
        'scientific_name': 'Microsorum pteropus',
        'light_requirement': 'Low',
        'fish_id': fish.id
    }).json
    assert plant['location'] == 'InTank'

    added = client.post(f"/plants/{plant['id']}/issues", json={
        'description': 'Brown spots on leaves',
        'severity': 'Minor',
        'date_identified': '2025-01-05'
    })
    assert added.status_code == 201
    assert len(added.json['active_issues']) == 1

    resolved = client.post(f"/plants/{plant['id']}/issues/0/resolve", json={'resolution_notes': 'Cut the leaf'})
    assert resolved.status_code == 200
    assert resolved.json['issues'][0]['is_resolved'] is True
    assert resolved.json['active_issues'] == []

    assert client.post(f"/plants/{plant['id']}/issues/4/resolve").status_code == 404
    assert client.get(f"/fish/{fish.id}/plants").json[0]['name'] == 'Java Fern'


# 17. Integration Test: plants filtered by location
def test_plant_location_filter(client):
    client.post('/plants', json={'name': 'Anubias', 'location': 'InQuarantine'})
    client.post('/plants', json={'name': 'Amazon Frogbit'})

    assert [p['name'] for p in client.get('/plants').json] == ['Amazon Frogbit', 'Anubias']
    assert [p['name'] for p in client.get('/plants?location=InQuarantine').json] == ['Anubias']
    assert client.get('/plants?location=Garden').status_code == 400


# 18. Integration Test: symptoms and daily logs are tracked on a treatment plan
def test_treatment_symptoms_and_logs(client):
    plan = client.post('/treatments', json={'illness_name': 'Fin rot', 'medication_notes': 'Almond leaves'}).json
    assert plan['status'] == 'Active'

    client.post(f"/treatments/{plan['id']}/symptoms", json={'name': 'Ragged fins', 'severity': 'Moderate'})
    updated = client.patch(f"/treatments/{plan['id']}/symptoms/0", json={'severity': 'Mild', 'notes': 'Regrowing'})
    assert updated.status_code == 200
    assert updated.json['symptoms'][0]['severity'] == 'Mild'
    assert len(updated.json['symptoms'][0]['history']) == 2

    assert client.patch(f"/treatments/{plan['id']}/symptoms/3", json={'severity': 'Mild'}).status_code == 404

    client.post(f"/treatments/{plan['id']}/logs", json={'date': '2025-01-02', 'actions': '50% water change'})
    client.post(f"/treatments/{plan['id']}/logs", json={'date': '2025-01-03', 'actions': 'Added almond leaf'})
    logs = client.get(f"/treatments/{plan['id']}/logs").json
    assert [l['actions'] for l in logs] == ['Added almond leaf', '50% water change']


# 19. Integration Test: a treatment can only be completed while active
def test_treatment_complete(client):
    plan = client.post('/treatments', json={'illness_name': 'Fin rot'}).json

    completed = client.post(f"/treatments/{plan['id']}/complete", json={'outcome': 'Fins regrown'})
    assert completed.status_code == 200
    assert completed.json['status'] == 'Completed'
    assert completed.json['end_date'] is not None
    assert completed.json['treatment_logs'][0]['actions'] == 'Treatment completed'

    assert client.post(f"/treatments/{plan['id']}/complete").status_code == 400
    assert client.post(f"/treatments/{plan['id']}/discontinue").status_code == 400

    shown = client.get('/notifications').json
    assert shown[0]['title'] == 'Treatment Completed'
    assert "Fin rot" in shown[0]['message']


# 20. Integration Test: treatments filtered by status
def test_treatment_status_filter(client):
    client.post('/treatments', json={'illness_name': 'Fin rot', 'start_date': '2025-01-01'})
    ich = client.post('/treatments', json={'illness_name': 'Ich', 'start_date': '2025-02-01'}).json
    client.post(f"/treatments/{ich['id']}/discontinue", json={'outcome': 'Wrong diagnosis'})

    assert [p['illness_name'] for p in client.get('/treatments').json] == ['Ich', 'Fin rot']
    assert [p['illness_name'] for p in client.get('/treatments?status=Active').json] == ['Fin rot']
    assert [p['illness_name'] for p in client.get('/treatments?status=Discontinued').json] == ['Ich']


# 21. Integration Test: a photo is stored in the upload folder and served back with a thumbnail
def test_photo_upload_and_thumbnail(client, app):
    response = client.post('/photos', data={
        'file': (make_image(), 'volt.png'),
        'caption': 'Flaring at the mirror',
        'category': 'Behavior'
    }, content_type='multipart/form-data')

    assert response.status_code == 201
    photo = response.json
    assert photo['file_name'].endswith('_volt.png')
    stored = os.path.join(app.config['UPLOAD_FOLDER'], photo['file_name'])
    assert os.path.exists(stored)

    assert client.get(f"/photos/{photo['id']}/file").status_code == 200

    thumb = client.get(f"/photos/{photo['id']}/thumbnail")
    assert thumb.status_code == 200
    assert thumb.mimetype == 'image/png'
    with Image.open(io.BytesIO(thumb.data)) as img:
        assert img.size == (200, 150)

    assert client.get('/photos/categories').json == ['Behavior']

    assert client.delete(f"/photos/{photo['id']}").status_code == 204
    assert not os.path.exists(stored)
    assert FishPhoto.query.count() == 0


# 22. Integration Test: files that are not images are refused
def test_photo_invalid_format(client):
    response = client.post('/photos', data={
        'file': (io.BytesIO(b"not an image"), 'notes.txt')
    }, content_type='multipart/form-data')

    assert response.status_code == 400
    assert "Invalid file format" in response.json['message']


# 23. Integration Test: treatment progress photos are kept out of the gallery
def test_treatment_progress_photo(client):
    plan = client.post('/treatments', json={'illness_name': 'Fin rot'}).json

    uploaded = client.post(f"/treatments/{plan['id']}/photos", data={
        'file': (make_image("JPEG"), 'day1.jpg'),
        'caption': 'Day 1'
    }, content_type='multipart/form-data')
    assert uploaded.status_code == 201
    photo_id = uploaded.json['id']

    assert client.get(f"/treatments/{plan['id']}").json['progress_photo_ids'] == [photo_id]
    assert [p['caption'] for p in client.get(f"/treatments/{plan['id']}/photos").json] == ['Day 1']
    assert client.get('/photos').json == []
    assert len(client.get('/photos?include_treatment=true').json) == 1

    assert client.delete(f"/treatments/{plan['id']}/photos/{photo_id}").status_code == 204
    assert client.get(f"/treatments/{plan['id']}").json['progress_photo_ids'] == []


# 24. Integration Test: editing a note moves it to the top and its tags are listed
def test_notes(client):
    diet = client.post('/notes', json={'title': 'Diet', 'content': 'Pellets', 'tags': 'food, schedule'}).json
    client.post('/notes', json={'title': 'Bubble nest', 'content': 'Big one today', 'tags': 'behavior'})

    edited = client.patch(f"/notes/{diet['id']}", json={'content': 'Pellets and bloodworms'})
    assert edited.status_code == 200
    assert edited.json['modified_datetime'] >= edited.json['created_datetime']
    assert edited.json['tag_list'] == ['food', 'schedule']

    assert [n['title'] for n in client.get('/notes').json] == ['Diet', 'Bubble nest']
    assert [n['title'] for n in client.get('/notes?tag=behavior').json] == ['Bubble nest']
    assert client.get('/notes/tags').json == ['behavior', 'food', 'schedule']


# 25. Integration Test: overdue check raises one notification per overdue task
def test_check_overdue(client):
    client.post('/maintenance-tasks', json={'title': 'Clean filter', 'scheduled_datetime': '2025-01-10T10:00:00'})
    client.post('/maintenance-tasks', json={'title': 'Water change', 'scheduled_datetime': in_days(2)})

    response = client.post('/notifications/check-overdue')
    assert response.status_code == 200
    assert len(response.json) == 1
    assert response.json[0]['title'] == 'Overdue Maintenance Task'
    assert "Clean filter" in response.json[0]['message']


# 26. Integration Test: notifications can be marked read one by one or all at once
def test_notifications_read(client, app):
    service = extensions.notification_service
    first = service.show_notification("Hello", "first")
    service.show_notification("Hello", "second")

    read = client.post(f'/notifications/{first.id}/read')
    assert read.json['read'] is True
    assert len(client.get('/notifications?unread=true').json) == 1

    assert client.post('/notifications/read-all').json == {'updated': 1}
    assert client.get('/notifications?unread=true').json == []

    assert client.delete(f'/notifications/{first.id}').status_code == 204
    assert client.get(f'/notifications/{first.id}').status_code == 404


# 27. Integration Test: moving a task inside the reminder window drops its old reminder
def test_maintenance_reschedule_inside_lead_time(client):
    task = client.post('/maintenance-tasks', json={'title': 'Water change', 'scheduled_datetime': in_days(2)}).json
    assert Notification.query.filter_by(tag=task['notification_id']).count() == 1

    soon = (datetime.now() + timedelta(minutes=30)).replace(microsecond=0).isoformat()
    response = client.patch(f"/maintenance-tasks/{task['id']}", json={'scheduled_datetime': soon})

    assert response.status_code == 200
    assert Notification.query.filter_by(tag=task['notification_id']).count() == 0


# 28. Integration Test: recurrence fields of the wrong type are a bad request
def test_maintenance_patch_wrong_types(client):
    task = client.post('/maintenance-tasks', json={'title': 'Feed', 'scheduled_datetime': in_days(1)}).json

    response = client.patch(f"/maintenance-tasks/{task['id']}", json={
        'title': 'Feed twice',
        'is_recurring': True,
        'recurrence_frequency_days': "7"
    })
    assert response.status_code == 400

    response = client.patch(f"/maintenance-tasks/{task['id']}", json={'is_recurring': "false"})
    assert response.status_code == 400

    stored = client.get(f"/maintenance-tasks/{task['id']}").json
    assert stored['title'] == 'Feed'
    assert stored['is_recurring'] is False
    assert stored['recurrence_frequency_days'] == task['recurrence_frequency_days']


# 29. Integration Test: a fish's plants filtered by location
def test_fish_plant_location_filter(client, fish):
    client.post('/plants', json={'name': 'Anubias', 'location': 'InQuarantine', 'fish_id': fish.id})
    client.post('/plants', json={'name': 'Java Fern', 'fish_id': fish.id})

    assert [p['name'] for p in client.get(f'/fish/{fish.id}/plants?location=InQuarantine').json] == ['Anubias']
    assert client.get(f'/fish/{fish.id}/plants?location=Garden').status_code == 400


# 30. Integration Test: a progress photo that cannot be written is a server error and nothing is attached
def test_treatment_photo_write_failure(client):
    plan = client.post('/treatments', json={'illness_name': 'Fin rot'}).json

    with patch('app.services.image_service.ImageService.save_image', side_effect=OSError("No space left on device")):
        response = client.post(f"/treatments/{plan['id']}/photos", data={
            'file': (make_image("JPEG"), 'day1.jpg')
        }, content_type='multipart/form-data')

    assert response.status_code == 500
    assert "Error saving image" in response.json['message']
    assert client.get(f"/treatments/{plan['id']}").json['progress_photo_ids'] == []
    assert FishPhoto.query.count() == 0
