# register_discord_commands.py
# Registers the /verify application command for the configured guild(s).

import os
import discord
from dotenv import load_dotenv

load_dotenv(os.path.join(os.path.dirname(__file__), '../../.env'))
TOKEN = os.getenv('DISCORD_TOKEN')

client = discord.Client(intents=discord.Intents.none())


def get_commands():
    return [
        {
            "name": "verify",
            "description": "Verify your Kingshot Governor Profile",
            "type": 1,
            "dm_permission": False,
        }
    ]


def target_guilds():
    raw = ",".join([os.getenv('GUILD_ID', ''), os.getenv('TEST_GUILDS', '')])
    return sorted({int(chunk.strip()) for chunk in raw.replace(';', ',').split(',') if chunk.strip().isdigit()})


async def register_commands():
    app_info = await client.application_info()
    app_id = app_info.id
    commands = get_commands()
    guilds = target_guilds()
    if not guilds:
        raise SystemExit('GUILD_ID is required to register guild commands.')
    for guild_id in guilds:
        await client.http.bulk_upsert_guild_commands(app_id, guild_id, commands)
        print(f'Registered /verify for guild {guild_id}.')


@client.event
async def on_ready():
    try:
        await register_commands()
    finally:
        await client.close()


if __name__ == '__main__':
    if not TOKEN:
        raise SystemExit('DISCORD_TOKEN is required.')
    client.run(TOKEN)
