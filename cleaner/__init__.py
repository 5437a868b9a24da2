"""
Stale Cleaner


Modules:
- staleness: sweep candidates, validate with the oracle, patch files, publish PRs
- devops: git subprocess wrapper, GitHub REST client, activity feed
- llm: oracle client and prompts
- agents: end-to-end run driver
"""
