"""Watch Order: ordered watch lists with seasons and episodes."""
