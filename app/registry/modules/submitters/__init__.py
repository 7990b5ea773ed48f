"""
Submitters: the person (name + mobile) who fills in the registration form.

- Session resolution (find-or-create in submitter_sessions, transient fallback)
- Aggregation of profiles by (submitter_name, submitter_mobile)
- Lookup of a submitter's profiles by mobile number
"""
