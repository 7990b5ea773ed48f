"""
Profile records (public submission, admin edit/delete).

One row per registered person; the submitter who filled in the form is kept
on the row as (submitter_name, submitter_mobile).
"""
