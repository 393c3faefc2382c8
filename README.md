# blastarena

A small two-player arcade game in the spirit of the classic bomb-laying
maze games. Two players share a tile map of solid and breakable blocks,
drop bombs whose blasts reach three tiles in each direction, and try to
wear each other down. The two copies of the game keep in sync over the
network using either TCP or UDP. The window is drawn with pygame.

## Installing

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Images and the map

The package does not ship any artwork or a level. Images and the map are
read from an `assets` directory inside the installed `blastarena`
package (`blastarena.animation.ASSET_DIR`). It expects:

- `Background.png` — the arena background; its size sets the size of
  the arena (without it the arena is 496 × 208).
- `map.txt` — the level (see below).
- `block.png`, `breakable_block.png`, `breakable_block1.png` … `3.png`
- `bomb1.png` … `bomb3.png`
- `player_down1.png` … `3.png`, and the same for `up`, `left`, `right`
  and `dead`; `player_down2.png` is the idle sprite.
- `center_exp1.png`, `center_exp2.png`, and likewise `x_exp`, `y_exp`,
  `left_exp`, `right_exp`, `up_exp`, `down_exp`.

A missing image is logged and left out; objects without an image are not
drawn. If `map.txt` cannot be read the arena stays empty.

## Playing

Start the game with:

```
blastarena
```

Options:

| Option                  | Meaning                                  |
|-------------------------|------------------------------------------|
| `--player {1,2}`        | the player you control (default 1)       |
| `--protocol {TCP,UDP}`  | the transport (default UDP)              |
| `-v`, `--verbose`       | log debug messages                       |

Both players run their own copy of the game. The first copy to start
becomes the server on port `12345`; the second finds the port taken and
joins as a client of `127.0.0.1:12345`, so both copies run on the same
machine. Pick a different player in each copy and the same protocol in
both.

Every 250 ms each copy sends the position and health of its own player
to the other. Key presses, bomb placements and deaths are sent as they
happen; a bomb placement is sent three times and duplicates are dropped
by sequence number, and state updates older than the newest one seen are
ignored.

### Controls

| Key   | Action        |
|-------|---------------|
| W     | move up       |
| S     | move down     |
| A     | move left     |
| D     | move right    |
| Space | place a bomb  |

Each player starts with three health points and loses one for every
blast that reaches them. When a player's health runs out, a banner names
the other player as the winner; press a key or click to close the game,
which quits half a second later. Closing the window quits at any time.

## Rules of the arena

- A bomb goes off two seconds after it is placed.
- The blast spreads up to three tiles left, right, up and down from the
  bomb. It stops at the first block in its path; a breakable block in
  that spot crumbles, a solid block does not.
- A bomb cannot be placed on a tile already occupied by a block.
- Players cannot walk through blocks.
- Moving diagonally is slower per axis, so diagonal and straight moves
  cover about the same distance.

## Maps

Maps are plain text, one line per row of tiles:

| Character | Meaning                     |
|-----------|-----------------------------|
| `B`       | solid block                 |
| `H`       | breakable block             |
| `1`       | starting point of Player 1  |
| `2`       | starting point of Player 2  |
| `X`       | empty floor                 |

Any other character is logged as unknown and left empty. The game reads
a grid of 31 columns by 13 rows. Maps are read by
`blastarena.maploader.MapLoader`, whose `parse_lines` also builds a
level from any iterable of strings.

## Using the pieces

The modules can be used on their own, for instance in tests or tools:

- `blastarena.animation` — `Animation`, `load_frames`, `load_image` and
  a `Scheduler` that fires timers as its clock is advanced by
  `advance(elapsed_ms)`.
- `blastarena.objects` — `Rect`, `Scene`, `GameObject`, `Block`,
  `BreakableBlock`, `ExplosionType` and `ExplosionEffect`.
- `blastarena.actors` — `Key`, `Player` and `Bomb`.
- `blastarena.network` — `TcpManager` and `UdpManager`, chosen with
  `create_manager("TCP")` or `create_manager("UDP")`; messages are JSON
  objects, one per line.
- `blastarena.session` — `GameNetworkManager`, which turns player events
  into messages and incoming messages back into events.
- `blastarena.hud` — `HUD` and `HealthDisplay`.
- `blastarena.game` — `Game`, which runs a match.
- `blastarena.app` — `parse_settings`, `GameView` and `main`.

Images are loaded through a `loader` argument (by default `load_image`),
so objects can be built without any image files.