import asyncio
import logging
import os

import nexroles


async def main() -> None:
    nexroles.configure(verbose=True)  # log formatting

    settings = nexroles.ReconcilerSettings()
    storage = nexroles.FileStateStorage(path='example.state.yaml')
    info = nexroles.ConnectionInfo(
        server=os.environ.get('NEXUS_URL', 'http://localhost:8081'),
        username=os.environ.get('NEXUS_USERNAME', 'admin'),
        password=os.environ.get('NEXUS_PASSWORD', 'admin123'),
    )
    specs = nexroles.parse_declarations([
        {'userid': 'jdoe', 'roles': ['nx-developers']},
    ])

    async with nexroles.APIContext(info) as context:
        logger = logging.getLogger('nexroles.example')
        store = nexroles.ApiUserStore(context=context, settings=settings, logger=logger)
        lifecycle = nexroles.UserRoleLifecycle(store=store, settings=settings)
        for action in await nexroles.apply(specs, lifecycle=lifecycle, storage=storage):
            print(action)


if __name__ == '__main__':
    asyncio.run(main())
