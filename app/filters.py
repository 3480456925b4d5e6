"""
Search, filter and sort over already loaded collections.

Every search is a case-insensitive substring match; a blank search term
matches everything.
"""
from app.scheduling import MaintenanceStatus
from app.utils import contains, split_tags


def _search_term(search):
    if not search or not search.strip():
        return None
    return search.lower()


def filter_tank_logs(logs, search=None, category=None):
    term = _search_term(search)
    result = list(logs)

    if term:
        result = [l for l in result
                  if contains(l.title, term) or contains(l.description, term) or contains(l.category, term)]

    if category:
        result = [l for l in result if l.category == category]

    return sorted(result, key=lambda l: l.log_datetime, reverse=True)


def filter_maintenance_tasks(tasks, search=None, category=None, show_completed=True, now=None):
    term = _search_term(search)
    result = list(tasks)

    if term:
        result = [t for t in result if contains(t.title, term) or contains(t.description, term)]

    if category:
        result = [t for t in result if t.category == category]

    if not show_completed:
        result = [t for t in result if t.get_status(now) != MaintenanceStatus.COMPLETED]

    # overdue first, then by next due time
    return sorted(result, key=lambda t: (0 if t.get_status(now) == MaintenanceStatus.OVERDUE else 1,
                                         t.get_next_scheduled_datetime()))


def filter_plants(plants, search=None, location=None):
    term = _search_term(search)
    result = list(plants)

    if term:
        result = [p for p in result
                  if contains(p.name, term) or contains(p.scientific_name, term) or contains(p.care_notes, term)]

    if location:
        result = [p for p in result if p.location == location]

    return sorted(result, key=lambda p: p.name)


def filter_treatments(plans, search=None, status=None):
    term = _search_term(search)
    result = list(plans)

    if term:
        result = [p for p in result
                  if contains(p.illness_name, term) or contains(p.description, term)
                  or contains(p.medication_notes, term)]

    if status:
        result = [p for p in result if p.status == status]

    return sorted(result, key=lambda p: p.start_date, reverse=True)


def filter_photos(photos, search=None, category=None, include_treatment=False):
    term = _search_term(search)
    result = list(photos)

    if not include_treatment:
        result = [p for p in result if not p.is_treatment_photo]

    if term:
        result = [p for p in result if contains(p.caption, term) or contains(p.category, term)]

    if category:
        result = [p for p in result if p.category == category]

    return sorted(result, key=lambda p: p.date_taken, reverse=True)


def filter_notes(notes, search=None, tag=None):
    term = _search_term(search)
    result = list(notes)

    if term:
        result = [n for n in result
                  if contains(n.title, term) or contains(n.content, term) or contains(n.tags, term)]

    if tag:
        result = [n for n in result if tag in n.tag_list()]

    return sorted(result, key=lambda n: n.modified_datetime, reverse=True)


def distinct_categories(items):
    return sorted({i.category for i in items if i.category and i.category.strip()})


def all_tags(notes):
    tags = set()
    for note in notes:
        tags.update(split_tags(note.tags))
    return sorted(tags)
