"""
Navigation links shown in the dashboard header, per user type.
"""

STUDENT_LINKS = [
    ('/dashboard/student', 'Dashboard'),
    ('/dashboard/student/academic', 'Academic'),
    ('/dashboard/student/courses', 'Courses'),
    ('/dashboard/student/exams', 'Exams'),
    ('/dashboard/student/internships', 'Internships'),
    ('/dashboard/profile', 'Profile'),
]

EMPLOYER_LINKS = [
    ('/dashboard/employer', 'Dashboard'),
    ('/dashboard/employer/job-listings', 'Job Listings'),
    ('/dashboard/employer/applications', 'Applications'),
    ('/dashboard/employer/candidates', 'Candidates'),
    ('/dashboard/employer/interviews', 'Interviews'),
    ('/dashboard/employer/messages', 'Messages'),
    ('/dashboard/employer/company', 'Company'),
]

CANDIDATE_LINKS = [
    ('/dashboard/candidate', 'Dashboard'),
    ('/dashboard/candidate/job-search', 'Job Search'),
    ('/dashboard/candidate/saved-jobs', 'Saved Jobs'),
    ('/dashboard/candidate/applications', 'My Applications'),
    ('/dashboard/candidate/interviews', 'Interviews'),
    ('/dashboard/candidate/messages', 'Messages'),
    ('/dashboard/candidate/nsz-services', 'NSZ Services'),
    ('/dashboard/candidate/profile', 'Profile'),
]

PROFESSOR_LINKS = [
    ('/dashboard/professor', 'Dashboard'),
    ('/dashboard/professor/courses', 'Courses'),
    ('/dashboard/professor/exam-sessions', 'Exam Sessions'),
    ('/dashboard/professor/grades', 'Grades'),
    ('/dashboard/profile', 'Profile'),
]

ADMIN_LINKS = [
    ('/dashboard/admin', 'Dashboard'),
    ('/dashboard/admin/students', 'Students'),
    ('/dashboard/admin/professors', 'Professors'),
    ('/dashboard/admin/subjects', 'Departments & Majors'),
    ('/dashboard/admin/exam-periods', 'Exam Periods'),
    ('/dashboard/admin/graduation-requests', 'Graduation'),
    ('/dashboard/admin/employers', 'Employers'),
    ('/dashboard/admin/job-listings', 'Job Listings'),
    ('/dashboard/admin/benefit-claims', 'Benefit Claims'),
    ('/dashboard/admin/competitions', 'Competitions'),
    ('/dashboard/admin/state-communications', 'State Communications'),
    ('/dashboard/admin/notifications', 'Notifications'),
]

NAV_LINKS = {
    'STUDENT': STUDENT_LINKS,
    'EMPLOYER': EMPLOYER_LINKS,
    'CANDIDATE': CANDIDATE_LINKS,
    'PROFESSOR': PROFESSOR_LINKS,
    'ADMIN': ADMIN_LINKS,
    'ADMINISTRATOR': ADMIN_LINKS,
    'STUDENTSKA_SLUZBA': ADMIN_LINKS,
}


def nav_links_for(user_type):
    return NAV_LINKS.get(user_type, [('/dashboard', 'Dashboard')])
