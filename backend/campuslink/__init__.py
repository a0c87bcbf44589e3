"""campuslink: friend, project and teammate recommendations for student networks."""
