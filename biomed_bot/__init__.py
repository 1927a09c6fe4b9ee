"""Telegram bot announcing the maths livestream to subscribed chats."""
