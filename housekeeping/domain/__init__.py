"""领域规则"""
