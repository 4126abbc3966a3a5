from lms_attendance.portal.parsing import (
    extract_hidden_fields,
    has_rejection_marker,
    looks_like_login_page,
    parse_attendance_rows,
    parse_profile,
)

ATTENDANCE_FRAGMENT = """
<div class="attendance_result">
  <table class="table">
    <thead><tr><th>Subject</th><th>Percentage</th><th>Present</th></tr></thead>
    <tbody>
      <tr><td>Anatomy</td><td>75.86%</td><td>22/29</td></tr>
      <tr><td>  Physiology
          </td><td>N/A</td><td>10 / 20</td></tr>
      <tr><td>Biochemistry</td><td>-</td><td>not held</td></tr>
      <tr><td colspan="3">Total</td></tr>
    </tbody>
  </table>
</div>
"""

DASHBOARD = """
<html><body>
<h4 class="mt0">Welcome, Asha  Kumar </h4>
<div class="user-progress">
  <ul>
    <li class="lecture-list">
      <img src="/img/anatomy.png">
      <div class="media-body"><h5 class="media-title">Anatomy Lecture</h5><p class="text-muted">Dr. Rao</p></div>
      <div class="ms-auto"><span class="bmedium">Hall 2</span><span class="text-muted">10:00 AM</span></div>
    </li>
    <li class="lecture-list">
      <div><span class="bmedium">Physiology Lab</span></div>
      <div class="ms-auto"><span>Lab 1</span><span>02:00 PM</span></div>
    </li>
  </ul>
</div>
</body></html>
"""

LOGIN_PAGE = """
<html><body>
<h3>Student Login</h3>
<form method="post">
  <input type="hidden" name="csrf_token" value="abc123">
  <input type="hidden" name="redirect_to">
  <input type="hidden" value="orphan">
  <label>Username</label><input type="text" name="username">
  <label>Password</label><input type="password" name="password">
</form>
</body></html>
"""


def test_parse_attendance_rows_reads_subject_percent_and_ratio():
    rows = parse_attendance_rows(ATTENDANCE_FRAGMENT)

    assert [r.subject for r in rows] == ["Anatomy", "Physiology", "Biochemistry"]

    anatomy, physiology, biochemistry = rows
    assert (anatomy.present, anatomy.total, anatomy.absent, anatomy.percent) == (22, 29, 7, 75.86)
    # Non-numeric percentage cell falls back to present/total.
    assert (physiology.present, physiology.total, physiology.percent) == (10, 20, 50.0)
    # No ratio in the cell: nothing held.
    assert (biochemistry.present, biochemistry.total, biochemistry.percent) == (0, 0, 0.0)


def test_parse_attendance_rows_without_table_is_empty():
    assert parse_attendance_rows('<div class="attendance_result"><p>No record found</p></div>') == []
    assert parse_attendance_rows("") == []
    assert parse_attendance_rows(None) == []


def test_parse_attendance_rows_uses_any_table_when_container_missing():
    rows = parse_attendance_rows("<table><tr><td>Pathology</td><td>80</td><td>8/10</td></tr></table>")

    assert len(rows) == 1
    assert rows[0].subject == "Pathology"
    assert rows[0].percent == 80.0


def test_parse_profile_reads_name_and_upcoming():
    profile = parse_profile(DASHBOARD, "21MB001")

    assert profile.display_name == "Asha Kumar"
    first, second = profile.upcoming
    assert first.title == "Anatomy Lecture"
    assert first.subtitle == "Dr. Rao"
    assert first.location == "Hall 2"
    assert first.time == "10:00 AM"
    assert first.avatar == "/img/anatomy.png"

    assert second.title == "Physiology Lab"
    assert second.subtitle == ""
    assert second.location == "Lab 1"
    assert second.time == "02:00 PM"


def test_parse_profile_falls_back_to_identity():
    profile = parse_profile("<html><body><p>Dashboard</p></body></html>", "21MB001")

    assert profile.display_name == "21MB001"
    assert profile.upcoming == []


def test_extract_hidden_fields_keeps_named_inputs_only():
    assert extract_hidden_fields(LOGIN_PAGE) == {"csrf_token": "abc123", "redirect_to": ""}


def test_login_page_signature():
    assert looks_like_login_page(LOGIN_PAGE)
    assert not looks_like_login_page(DASHBOARD)


def test_rejection_marker_is_case_insensitive():
    assert has_rejection_marker("<div class='alert'>INVALID USERNAME OR PASSWORD</div>")
    assert not has_rejection_marker("<div>Welcome back</div>")


def test_parse_attendance_rows_ignores_tables_outside_result_container():
    fragment = (
        '<div class="attendance_result"><p>No record found</p></div>'
        "<table><tr><td>Legend</td><td>90</td><td>9/10</td></tr></table>"
    )

    assert parse_attendance_rows(fragment) == []
