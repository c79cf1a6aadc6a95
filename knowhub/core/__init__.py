"""
Core Module - Knowledge logic over the extracted item snapshot.

Key responsibilities:
- Knowledge extraction from profile, Q&A, survey and status-note records
- Knowledge graph construction (users, skills, topics)
- Expert inference from accumulated skill evidence
- Query relevance ranking
- Topic trend detection
- Answer prompt rendering for the downstream generator
"""
