"""Scene tree assembly over the revision codecs."""
